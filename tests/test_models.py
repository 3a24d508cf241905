"""Checks that the SQLAlchemy model matches the repository's row shape."""
from datetime import date

from sqlalchemy import Float, create_engine, inspect
from sqlalchemy.orm import Session

from src.catalog import Book as BookSchema
from src.db.database import BOOK_COLUMNS
from src.db.models import Base, Book


def test_model_columns_match_repository():
    columns = {c.name for c in Book.__table__.columns}
    assert columns == {"id", "created_at", "updated_at", *BOOK_COLUMNS}
    assert isinstance(Book.__table__.c.rating.type, Float)


def test_model_round_trips_through_schema():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    assert "books_finished_on_idx" in {ix["name"] for ix in inspect(engine).get_indexes("books")}

    with Session(engine) as session:
        session.add(Book(title="Dune", isbn="9780441172719", rating=4.5, finished_on=date(2024, 1, 1)))
        session.commit()
        row = session.query(Book).one().to_dict()

    book = BookSchema(**row)
    assert book.id == 1
    assert book.rating == 4.5
    assert book.finished_on == date(2024, 1, 1)
    assert book.created_at is not None
