"""
Cover Art Resolution
--------------------
Every cover URL a book can end up with passes through this module. Only
images served from the Open Library covers host are trusted; anything else
is rebuilt from the canonical ISBN or dropped.
"""

from typing import Optional, Union
from urllib.parse import quote, urlsplit

from src.catalog.isbn import canonical_isbn

COVERS_HOST = "covers.openlibrary.org"
COVERS_ORIGIN = f"https://{COVERS_HOST}"
COVER_SIZES = ("S", "M", "L")
DEFAULT_SIZE = "M"


def _check_size(size: str) -> str:
    if size not in COVER_SIZES:
        raise ValueError(f"Unsupported cover size {size!r}, expected one of {COVER_SIZES}")
    return size


def cover_from_isbn(
    isbn: Optional[str], size: str = DEFAULT_SIZE, default_false: bool = False
) -> Optional[str]:
    """
    Build a cover URL from an ISBN.

    Returns None unless the normalized ISBN has 10 or 13 characters. With
    ``default_false`` Open Library answers 404 instead of a blank image,
    which lets the page swap in its own placeholder.
    """
    _check_size(size)
    clean = canonical_isbn(isbn)
    if clean is None:
        return None
    url = f"{COVERS_ORIGIN}/b/isbn/{quote(clean, safe='')}-{size}.jpg"
    return f"{url}?default=false" if default_false else url


def is_trusted_cover_url(url: str) -> bool:
    """True only for https URLs whose host is exactly the covers host."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return (
        parts.scheme == "https"
        and parts.netloc.lower() == COVERS_HOST
        and parts.path.startswith("/")
    )


def resolve_cover_url(
    candidate_url: Optional[str], isbn: Optional[str], size: str = DEFAULT_SIZE
) -> Optional[str]:
    """Keep a trusted candidate URL, otherwise derive one from the ISBN."""
    candidate = (candidate_url or "").strip()
    if candidate and is_trusted_cover_url(candidate):
        return candidate
    return cover_from_isbn(isbn, size)


def cover_from_provider_id(
    cover_id: Optional[Union[int, str]], isbn: Optional[str], size: str = DEFAULT_SIZE
) -> Optional[str]:
    """
    Cover URL for a search result.

    Open Library fills ``cover_i`` more reliably than it has ISBN covers, so
    the provider id wins and the ISBN is only a fallback.
    """
    _check_size(size)
    if cover_id:
        return f"{COVERS_ORIGIN}/b/id/{quote(str(cover_id), safe='')}-{size}.jpg"
    return cover_from_isbn(isbn, size)
