from typing import Dict, List, Optional, Protocol


class BookRepository(Protocol):
    def list_books(self, sort: str) -> List[Dict]:
        ...

    def get_book(self, book_id: int) -> Optional[Dict]:
        ...

    def insert_book(self, fields: Dict) -> int:
        ...

    def update_book(self, book_id: int, fields: Dict) -> bool:
        ...

    def delete_book(self, book_id: int) -> bool:
        ...
