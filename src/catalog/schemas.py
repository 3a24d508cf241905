"""
Pydantic models for catalog entries.

``BookForm`` carries raw form input exactly as the browser posts it: every
field is an optional string and no cleanup has happened yet.
``Book`` is a stored row as read back from the repository.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class BookForm(BaseModel):
    title: str = ""
    author: Optional[str] = None
    isbn: Optional[str] = None
    cover_url: Optional[str] = None
    rating: Optional[str] = None
    finished_on: Optional[str] = None
    review: Optional[str] = None
    notes: Optional[str] = None


class Book(BaseModel):
    id: int
    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    cover_url: Optional[str] = None
    rating: Optional[float] = None
    finished_on: Optional[date] = None
    review: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
