class CatalogError(Exception):
    """Base error for catalog operations."""


class BookNotFoundError(CatalogError):
    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} not found")
        self.book_id = book_id
