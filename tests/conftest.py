import pytest

from src.catalog import BookCatalog
from src.db.database import PostgresRepository


@pytest.fixture
def repository(tmp_path):
    """A repository backed by a throwaway SQLite file."""
    repo = PostgresRepository(use_sqlite=True, sqlite_path=str(tmp_path / "test.db"))
    yield repo
    repo.close()


@pytest.fixture
def catalog(repository):
    return BookCatalog(repository)
