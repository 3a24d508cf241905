from typing import Optional

RECENCY = "recency"
TITLE = "title"
RATING = "rating"

SORT_KEYS = (RECENCY, TITLE, RATING)
DEFAULT_SORT = RECENCY


def resolve_sort_key(raw: Optional[str]) -> str:
    """Map a user supplied sort value onto a known key, falling back to recency."""
    key = (raw or "").strip().lower()
    return key if key in SORT_KEYS else DEFAULT_SORT
