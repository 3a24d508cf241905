from src.enrichment.openlibrary import (
    InvalidQueryError,
    OpenLibraryClient,
    SearchFailedError,
    SearchHit,
)

__all__ = ["InvalidQueryError", "OpenLibraryClient", "SearchFailedError", "SearchHit"]
