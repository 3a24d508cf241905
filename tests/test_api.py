from datetime import date

import pytest
from fastapi.testclient import TestClient

import src.api.main as api_main
from src.catalog import BookCatalog
from src.config import Settings
from src.enrichment.openlibrary import SearchFailedError, SearchHit


class FakeRepository:
    def __init__(self):
        self.storage = {}
        self.next_id = 1
        self.list_calls = []

    def list_books(self, sort):
        self.list_calls.append(sort)
        return list(self.storage.values())

    def get_book(self, book_id):
        return self.storage.get(book_id)

    def insert_book(self, fields):
        book_id = self.next_id
        self.next_id += 1
        self.storage[book_id] = {"id": book_id, **fields}
        return book_id

    def update_book(self, book_id, fields):
        if book_id not in self.storage:
            return False
        self.storage[book_id] = {"id": book_id, **fields}
        return True

    def delete_book(self, book_id):
        return self.storage.pop(book_id, None) is not None


class FakeSearchClient:
    def __init__(self):
        self.results = []
        self.calls = []
        self.error = None

    def search(self, query):
        self.calls.append(query)
        if self.error:
            raise self.error
        return self.results


class BrokenRepository(FakeRepository):
    def list_books(self, sort):
        raise RuntimeError("connection lost: password=hunter2")


def make_client(monkeypatch, repo=None, **settings):
    repo = repo or FakeRepository()
    search = FakeSearchClient()
    monkeypatch.setattr(api_main, "catalog", BookCatalog(repo))
    monkeypatch.setattr(api_main, "search_client", search)
    monkeypatch.setattr(
        api_main, "settings", Settings(dsn="postgresql://unused", admin_password="s3cret", **settings)
    )
    client = TestClient(api_main.app, raise_server_exceptions=False)
    return client, repo, search


FORM = {
    "title": "Dune",
    "author": "Frank Herbert",
    "isbn": "978-0-441-17271-9",
    "cover_url": "",
    "rating": "5",
    "finished_on": "2024-01-01",
    "review": "Spice.",
    "notes": "",
}


def test_healthz(monkeypatch):
    client, _, _ = make_client(monkeypatch)
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_index_lists_books_with_resolved_sort(monkeypatch):
    client, repo, _ = make_client(monkeypatch)
    repo.insert_book({"title": "Dune", "isbn": "9780441172719", "finished_on": date(2024, 1, 1)})

    response = client.get("/", params={"sort": "RATING"})

    assert response.status_code == 200
    assert "Dune" in response.text
    assert "https://covers.openlibrary.org/b/isbn/9780441172719-M.jpg" in response.text
    assert repo.list_calls == ["rating"]

    client.get("/", params={"sort": "bogus"})
    assert repo.list_calls[-1] == "recency"


def test_every_response_gets_a_fresh_nonce(monkeypatch):
    client, _, _ = make_client(monkeypatch)

    first = client.get("/books/new")
    second = client.get("/books/new")

    csp_first = first.headers["content-security-policy"]
    csp_second = second.headers["content-security-policy"]
    assert csp_first != csp_second
    nonce = csp_first.split("'nonce-")[1].split("'")[0]
    assert f'nonce="{nonce}"' in first.text
    assert first.headers["referrer-policy"] == "no-referrer"


def test_admin_flag_is_rendered_only_with_secret(monkeypatch):
    client, _, _ = make_client(monkeypatch)

    assert 'class="badge"' in client.get("/", params={"admin": "s3cret"}).text
    assert 'class="badge"' not in client.get("/", params={"admin": "guess"}).text
    assert 'class="badge"' not in client.get("/").text


def test_create_normalizes_and_redirects(monkeypatch):
    client, repo, _ = make_client(monkeypatch)

    response = client.post("/books", data=FORM, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/"
    stored = repo.storage[1]
    assert stored["isbn"] == "9780441172719"
    assert stored["cover_url"] == "https://covers.openlibrary.org/b/isbn/9780441172719-M.jpg"
    assert stored["rating"] == 5.0
    assert stored["notes"] is None


def test_edit_form_and_missing_book(monkeypatch):
    client, repo, _ = make_client(monkeypatch)
    repo.insert_book({"title": "Emma", "author": "Austen"})

    assert "Emma" in client.get("/books/1/edit").text
    assert client.get("/books/42/edit").status_code == 404


def test_update_and_delete_report_missing_book(monkeypatch):
    client, repo, _ = make_client(monkeypatch)
    repo.insert_book({"title": "Emma"})

    assert client.post("/books/42", data=FORM, follow_redirects=False).status_code == 404
    assert client.post("/books/42/delete", follow_redirects=False).status_code == 404
    assert list(repo.storage) == [1]
    assert repo.storage[1]["title"] == "Emma"


def test_update_then_delete(monkeypatch):
    client, repo, _ = make_client(monkeypatch)
    repo.insert_book({"title": "Emma"})

    assert client.post("/books/1", data={"title": "Persuasion"}, follow_redirects=False).status_code == 303
    assert repo.storage[1]["title"] == "Persuasion"
    assert repo.storage[1]["author"] is None

    assert client.post("/books/1/delete", follow_redirects=False).status_code == 303
    assert repo.storage == {}


def test_writes_are_open_by_default(monkeypatch):
    client, repo, _ = make_client(monkeypatch)
    assert client.post("/books", data=FORM, follow_redirects=False).status_code == 303
    assert len(repo.storage) == 1


def test_writes_can_require_admin(monkeypatch):
    client, repo, _ = make_client(monkeypatch, require_admin_for_writes=True)

    assert client.post("/books", data=FORM, follow_redirects=False).status_code == 403
    assert repo.storage == {}

    response = client.post("/books?admin=s3cret", data=FORM, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/?admin=s3cret"
    assert len(repo.storage) == 1


def test_search_returns_query_and_results(monkeypatch):
    client, _, search = make_client(monkeypatch)
    search.results = [SearchHit(title="Dune", author="Frank Herbert", isbn="9780441172719", first_publish_year=1965)]

    response = client.get("/api/search", params={"q": "dune"})

    assert response.status_code == 200
    assert response.json() == {
        "query": "dune",
        "results": [{
            "title": "Dune",
            "author": "Frank Herbert",
            "isbn": "9780441172719",
            "first_publish_year": 1965,
            "cover_url": None,
        }],
    }
    assert search.calls == ["dune"]


@pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}])
def test_search_rejects_empty_query_without_calling_upstream(monkeypatch, params):
    client, _, search = make_client(monkeypatch)

    response = client.get("/api/search", params=params)

    assert response.status_code == 400
    assert response.json() == {"error": "Provide ?q="}
    assert search.calls == []


def test_search_failure_is_opaque(monkeypatch):
    client, _, search = make_client(monkeypatch)
    search.error = SearchFailedError("Search failed")

    response = client.get("/api/search", params={"q": "dune"})

    assert response.status_code == 502
    assert response.json() == {"error": "Search failed"}


def test_storage_failure_is_generic_500(monkeypatch):
    client, _, _ = make_client(monkeypatch, repo=BrokenRepository())

    response = client.get("/")

    assert response.status_code == 500
    assert "hunter2" not in response.text
    assert response.text == "Something broke. Check server logs."
    assert "script-src 'self' 'nonce-" in response.headers["content-security-policy"]
    assert response.headers["referrer-policy"] == "no-referrer"
