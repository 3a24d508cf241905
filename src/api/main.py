import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from src.api.security import build_request_context, content_security_policy, new_nonce
from src.catalog import BookCatalog, BookForm, BookNotFoundError
from src.catalog.sorting import resolve_sort_key
from src.config import Settings, configure_logging
from src.db.database import PostgresRepository
from src.enrichment.openlibrary import InvalidQueryError, OpenLibraryClient, SearchFailedError

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

settings: Settings = Settings.from_env()
catalog: BookCatalog | None = None
search_client: OpenLibraryClient | None = None

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    global catalog, search_client
    configure_logging(settings.log_level)
    repository = PostgresRepository(
        dsn=settings.dsn,
        use_sqlite=settings.use_sqlite,
        sqlite_path=settings.sqlite_path,
    )
    catalog = BookCatalog(repository)
    search_client = OpenLibraryClient(timeout=settings.search_timeout)
    logger.info("Reading log ready environment=%s", settings.environment)
    yield
    search_client.close()
    repository.close()


app = FastAPI(title="Reading Log", version="1.0.0", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")


def _with_security_headers(response, nonce: str):
    response.headers["Content-Security-Policy"] = content_security_policy(
        nonce, production=settings.is_production
    )
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


@app.middleware("http")
async def security_context(request: Request, call_next):
    context = build_request_context(request.query_params.get("admin"), settings)
    request.state.security = context
    response = await call_next(request)
    return _with_security_headers(response, context.nonce)


@app.exception_handler(BookNotFoundError)
async def book_not_found(request: Request, exc: BookNotFoundError):
    return PlainTextResponse("Not found", status_code=404)


@app.exception_handler(InvalidQueryError)
async def invalid_query(request: Request, exc: InvalidQueryError):
    return JSONResponse({"error": "Provide ?q="}, status_code=400)


@app.exception_handler(SearchFailedError)
async def search_failed(request: Request, exc: SearchFailedError):
    logger.error("Search failed path=%s", request.url.path, exc_info=exc)
    return JSONResponse({"error": "Search failed"}, status_code=502)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.error("Unhandled error path=%s", request.url.path, exc_info=exc)
    # Runs outside the security middleware, so the headers are set here too.
    context = getattr(request.state, "security", None)
    nonce = context.nonce if context else new_nonce()
    response = PlainTextResponse("Something broke. Check server logs.", status_code=500)
    return _with_security_headers(response, nonce)


def get_catalog() -> BookCatalog:
    if catalog is None:
        raise RuntimeError("Catalog not initialized")
    return catalog


def get_search_client() -> OpenLibraryClient:
    if search_client is None:
        raise RuntimeError("Search client not initialized")
    return search_client


def require_writer(request: Request) -> None:
    if settings.require_admin_for_writes and not request.state.security.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")


def book_form(
    title: str = Form(""),
    author: Optional[str] = Form(None),
    isbn: Optional[str] = Form(None),
    cover_url: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    finished_on: Optional[str] = Form(None),
    review: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
) -> BookForm:
    return BookForm(
        title=title,
        author=author,
        isbn=isbn,
        cover_url=cover_url,
        rating=rating,
        finished_on=finished_on,
        review=review,
        notes=notes,
    )


def _admin_query(request: Request) -> str:
    if not request.state.security.is_admin:
        return ""
    return "?" + urlencode({"admin": request.query_params["admin"]})


def _render(request: Request, name: str, **context):
    context.update(
        csp_nonce=request.state.security.nonce,
        is_admin=request.state.security.is_admin,
        admin_query=_admin_query(request),
    )
    return templates.TemplateResponse(request, name, context)


def _back_home(request: Request) -> RedirectResponse:
    return RedirectResponse(url="/" + _admin_query(request), status_code=303)


@app.get("/")
def index(request: Request, sort: Optional[str] = None, books: BookCatalog = Depends(get_catalog)):
    key = resolve_sort_key(sort)
    return _render(request, "index.html", books=books.list_books(key), sort=key)


@app.get("/books/new")
def new_book(request: Request):
    return _render(request, "new.html", sort="recency")


@app.post("/books", dependencies=[Depends(require_writer)])
def create_book(
    request: Request,
    form: BookForm = Depends(book_form),
    books: BookCatalog = Depends(get_catalog),
):
    books.create_book(form)
    return _back_home(request)


@app.get("/books/{book_id}/edit")
def edit_book(request: Request, book_id: int, books: BookCatalog = Depends(get_catalog)):
    return _render(request, "edit.html", book=books.get_book(book_id), sort="recency")


@app.post("/books/{book_id}", dependencies=[Depends(require_writer)])
def update_book(
    request: Request,
    book_id: int,
    form: BookForm = Depends(book_form),
    books: BookCatalog = Depends(get_catalog),
):
    books.update_book(book_id, form)
    return _back_home(request)


@app.post("/books/{book_id}/delete", dependencies=[Depends(require_writer)])
def delete_book(request: Request, book_id: int, books: BookCatalog = Depends(get_catalog)):
    books.delete_book(book_id)
    return _back_home(request)


@app.get("/api/search")
def search_books(q: Optional[str] = None, client: OpenLibraryClient = Depends(get_search_client)):
    if not q or not q.strip():
        return JSONResponse({"error": "Provide ?q="}, status_code=400)
    hits = client.search(q)
    return {"query": q, "results": [hit.to_dict() for hit in hits]}


@app.get("/healthz")
def healthz():
    return {"ok": True}
