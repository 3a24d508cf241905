"""
ISBN canonicalization.
"""

import re
from typing import Optional

_NON_ISBN_CHARS = re.compile(r"[^0-9Xx]")

VALID_LENGTHS = (10, 13)


def normalize_isbn(raw: Optional[str]) -> str:
    """Strip everything except digits and X, uppercased. No length check."""
    return _NON_ISBN_CHARS.sub("", str(raw or "")).upper()


def canonical_isbn(raw: Optional[str]) -> Optional[str]:
    """Return the normalized ISBN when it has a valid length, else None."""
    clean = normalize_isbn(raw)
    if len(clean) not in VALID_LENGTHS:
        return None
    return clean
