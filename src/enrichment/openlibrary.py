"""
Open Library API Integration
----------------------------
Searches Open Library and shapes the hits into the catalog's metadata so a
new entry can be pre-filled.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import requests

from src.catalog.covers import cover_from_provider_id

logger = logging.getLogger(__name__)

MAX_RESULTS = 5
DEFAULT_TIMEOUT = 10.0


class InvalidQueryError(ValueError):
    """Raised before any request is made when the query is empty."""


class SearchFailedError(Exception):
    """Raised for any upstream failure: timeout, network, HTTP status or payload."""


@dataclass
class SearchHit:
    """A search result ready to pre-fill a new book; never persisted."""
    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    first_publish_year: Optional[int] = None
    cover_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _first(values: Any) -> Optional[str]:
    if isinstance(values, list) and values:
        return values[0]
    return None


def parse_doc(doc: Dict[str, Any]) -> SearchHit:
    isbn = _first(doc.get("isbn"))
    return SearchHit(
        title=doc.get("title"),
        author=_first(doc.get("author_name")),
        isbn=isbn,
        first_publish_year=doc.get("first_publish_year") or None,
        cover_url=cover_from_provider_id(doc.get("cover_i"), isbn),
    )


class OpenLibraryClient:
    """Client for the Open Library search API"""

    BASE_URL = "https://openlibrary.org"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": "ReadingLog/1.0 (Personal Reading Catalog)"
        })

    def search(self, query: str) -> List[SearchHit]:
        """
        Search Open Library and return at most ``MAX_RESULTS`` hits.

        Either the whole list comes back or ``SearchFailedError`` is raised.
        """
        if not query or not query.strip():
            raise InvalidQueryError("Search query must not be empty")

        try:
            resp = self.session.get(
                f"{self.BASE_URL}/search.json",
                params={"q": query, "limit": MAX_RESULTS},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Open Library search failed for %r: %s", query, e)
            raise SearchFailedError("Search failed") from e

        docs = data.get("docs", []) if isinstance(data, dict) else None
        if not isinstance(docs, list) or not all(isinstance(d, dict) for d in docs):
            logger.error("Unexpected Open Library payload for %r", query)
            raise SearchFailedError("Search failed")

        hits = [parse_doc(doc) for doc in docs[:MAX_RESULTS]]
        logger.info("Open Library search q=%r hits=%d", query, len(hits))
        return hits

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
