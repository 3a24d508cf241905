from src.catalog.errors import BookNotFoundError, CatalogError
from src.catalog.schemas import Book, BookForm
from src.catalog.service import BookCatalog

__all__ = ["Book", "BookCatalog", "BookForm", "BookNotFoundError", "CatalogError"]
