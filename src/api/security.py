"""
Per-request security context.

Every request gets a fresh CSP nonce that authorizes the inline scripts of
that one response, plus an admin flag computed from the ``admin`` query
parameter and the configured shared secret.
"""

import base64
import hmac
import secrets
from dataclasses import dataclass
from typing import Optional

from src.catalog.covers import COVERS_ORIGIN
from src.config import Settings

NONCE_BYTES = 16


@dataclass(frozen=True)
class RequestContext:
    nonce: str
    is_admin: bool


def new_nonce() -> str:
    return base64.b64encode(secrets.token_bytes(NONCE_BYTES)).decode("ascii")


def is_admin(supplied: Optional[str], secret: Optional[str]) -> bool:
    """Constant-time check of the supplied value against the shared secret."""
    if not secret or supplied is None:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), secret.encode("utf-8"))


def build_request_context(admin_param: Optional[str], settings: Settings) -> RequestContext:
    return RequestContext(
        nonce=new_nonce(),
        is_admin=is_admin(admin_param, settings.admin_password),
    )


def content_security_policy(nonce: str, production: bool = True) -> str:
    script_src = ["'self'", f"'nonce-{nonce}'"]
    if not production:
        script_src.append("'unsafe-eval'")
    directives = {
        "default-src": ["'self'"],
        "script-src": script_src,
        "connect-src": ["'self'"],
        "style-src": ["'self'"],
        "img-src": ["'self'", "data:", "https:", COVERS_ORIGIN],
        "font-src": ["'self'"],
        "object-src": ["'none'"],
        "frame-ancestors": ["'self'"],
        "base-uri": ["'self'"],
        "form-action": ["'self'"],
    }
    return "; ".join(f"{name} {' '.join(values)}" for name, values in directives.items())
