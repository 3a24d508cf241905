import argparse
import os
from dataclasses import replace

from src.catalog import BookCatalog
from src.catalog.sorting import DEFAULT_SORT, SORT_KEYS
from src.config import Settings, configure_logging
from src.db.database import PostgresRepository
from src.enrichment.openlibrary import OpenLibraryClient


def search(query: str, timeout: float = 10.0) -> int:
    with OpenLibraryClient(timeout=timeout) as client:
        hits = client.search(query)
    for hit in hits:
        year = f" ({hit.first_publish_year})" if hit.first_publish_year else ""
        print(f"{hit.title or 'Untitled'} by {hit.author or 'Unknown'}{year}")
        print(f"    isbn={hit.isbn or '-'} cover={hit.cover_url or '-'}")
    return len(hits)


def list_catalog(settings: Settings, sort: str = DEFAULT_SORT) -> int:
    repository = PostgresRepository(
        dsn=settings.dsn,
        use_sqlite=settings.use_sqlite,
        sqlite_path=settings.sqlite_path,
    )
    try:
        books = BookCatalog(repository).list_books(sort)
    finally:
        repository.close()
    for book in books:
        rating = f"{book.rating:g}" if book.rating is not None else "-"
        finished = book.finished_on.isoformat() if book.finished_on else "-"
        print(f"[{book.id}] {book.title or 'Untitled'} / {book.author or 'Unknown'} rating={rating} finished={finished}")
    return len(books)


def run_api(host: str, port: int, use_sqlite: bool = False, reload: bool = False):
    import uvicorn

    if use_sqlite:
        os.environ["USE_SQLITE"] = "1"
        print("Starting API in SQLite mode")
    else:
        print("Starting API in PostgreSQL mode")

    uvicorn.run("src.api.main:app", host=host, port=port, reload=reload)


def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    parser = argparse.ArgumentParser(description="Reading Log CLI")
    subparsers = parser.add_subparsers(dest='command', required=True)

    api_parser = subparsers.add_parser('api', help='Run the web app')
    api_parser.add_argument('--host', default=settings.host)
    api_parser.add_argument('--port', type=int, default=settings.port)
    api_parser.add_argument('--sqlite', action='store_true', help='Use SQLite instead of PostgreSQL')
    api_parser.add_argument('--reload', action='store_true', help='Reload on code changes')

    search_parser = subparsers.add_parser('search', help='Search Open Library')
    search_parser.add_argument('query', help='Search query')

    list_parser = subparsers.add_parser('list', help='Print the catalog')
    list_parser.add_argument('--sort', choices=SORT_KEYS, default=DEFAULT_SORT)
    list_parser.add_argument('--sqlite', action='store_true', help='Use SQLite instead of PostgreSQL')

    args = parser.parse_args()

    if args.command == 'api':
        run_api(args.host, args.port, args.sqlite or settings.use_sqlite, args.reload)
    elif args.command == 'search':
        search(args.query, settings.search_timeout)
    elif args.command == 'list':
        if args.sqlite:
            settings = replace(settings, use_sqlite=True)
        list_catalog(settings, args.sort)


if __name__ == '__main__':
    main()
