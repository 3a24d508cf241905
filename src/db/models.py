"""
SQLAlchemy Models for the reading log
"""

from datetime import date, datetime
from typing import Optional
from sqlalchemy import Date, Float, Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


class Book(Base):
    __tablename__ = "books"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Entry fields
    title: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    author: Mapped[Optional[str]] = mapped_column(Text)
    isbn: Mapped[Optional[str]] = mapped_column(Text)
    cover_url: Mapped[Optional[str]] = mapped_column(Text)
    rating: Mapped[Optional[float]] = mapped_column(Float)
    finished_on: Mapped[Optional[date]] = mapped_column(Date)
    review: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("books_finished_on_idx", "finished_on"),
    )

    def __repr__(self):
        return f"<Book(id={self.id}, title='{self.title}', isbn='{self.isbn}')>"

    def to_dict(self) -> dict:
        """Convert to dictionary in the repository row shape"""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "cover_url": self.cover_url,
            "rating": self.rating,
            "finished_on": self.finished_on,
            "review": self.review,
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
