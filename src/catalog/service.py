"""
Book catalog service.

Applies the write-path rules (ISBN canonicalization, cover trust, value
coercion) before handing rows to the repository, and turns missing rows
into ``BookNotFoundError``.
"""

import logging
import math
from datetime import date
from typing import Dict, List, Optional

from src.catalog.covers import cover_from_isbn, resolve_cover_url
from src.catalog.errors import BookNotFoundError
from src.catalog.isbn import canonical_isbn
from src.catalog.schemas import Book, BookForm
from src.catalog.sorting import resolve_sort_key
from src.catalog.types import BookRepository

logger = logging.getLogger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def coerce_rating(raw: Optional[str]) -> Optional[float]:
    value = _blank_to_none(raw)
    if value is None:
        return None
    try:
        rating = float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric rating %r", raw)
        return None
    if not math.isfinite(rating):
        logger.warning("Ignoring non-finite rating %r", raw)
        return None
    return rating


def coerce_date(raw: Optional[str]) -> Optional[date]:
    value = _blank_to_none(raw)
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.warning("Ignoring malformed finished_on %r", raw)
        return None


def prepare_fields(form: BookForm) -> Dict:
    """Turn raw form input into the full set of column values for a write."""
    isbn = canonical_isbn(form.isbn)
    return {
        "title": (form.title or "").strip(),
        "author": _blank_to_none(form.author),
        "isbn": isbn,
        "cover_url": resolve_cover_url(form.cover_url, isbn),
        "rating": coerce_rating(form.rating),
        "finished_on": coerce_date(form.finished_on),
        "review": _blank_to_none(form.review),
        "notes": _blank_to_none(form.notes),
    }


class BookCatalog:
    def __init__(self, repository: BookRepository):
        self.repository = repository

    def list_books(self, sort: Optional[str] = None) -> List[Book]:
        key = resolve_sort_key(sort)
        books = [Book(**row) for row in self.repository.list_books(key)]
        for book in books:
            # Display fallback only, the stored row is left alone.
            if not book.cover_url:
                book.cover_url = cover_from_isbn(book.isbn)
        return books

    def get_book(self, book_id: int) -> Book:
        row = self.repository.get_book(book_id)
        if row is None:
            raise BookNotFoundError(book_id)
        return Book(**row)

    def create_book(self, form: BookForm) -> int:
        fields = prepare_fields(form)
        book_id = self.repository.insert_book(fields)
        logger.info("Created book id=%s isbn=%s", book_id, fields["isbn"])
        return book_id

    def update_book(self, book_id: int, form: BookForm) -> None:
        fields = prepare_fields(form)
        if not self.repository.update_book(book_id, fields):
            raise BookNotFoundError(book_id)
        logger.info("Updated book id=%s isbn=%s", book_id, fields["isbn"])

    def delete_book(self, book_id: int) -> None:
        if not self.repository.delete_book(book_id):
            raise BookNotFoundError(book_id)
        logger.info("Deleted book id=%s", book_id)
