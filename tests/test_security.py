import base64

from src.api.security import build_request_context, content_security_policy, is_admin, new_nonce
from src.config import Settings


def make_settings(**overrides):
    values = {"dsn": "postgresql://unused", "admin_password": "s3cret"}
    values.update(overrides)
    return Settings(**values)


def test_nonce_is_fresh_and_has_16_bytes():
    first, second = new_nonce(), new_nonce()
    assert first != second
    assert len(base64.b64decode(first)) == 16


def test_each_context_gets_its_own_nonce():
    settings = make_settings()
    contexts = [build_request_context(None, settings) for _ in range(50)]
    assert len({c.nonce for c in contexts}) == 50


def test_admin_flag_requires_exact_secret():
    assert is_admin("s3cret", "s3cret")
    assert not is_admin("S3CRET", "s3cret")
    assert not is_admin("", "s3cret")
    assert not is_admin(None, "s3cret")


def test_admin_flag_is_off_without_configured_secret():
    assert not is_admin(None, None)
    assert not is_admin("", "")
    assert not build_request_context("anything", make_settings(admin_password=None)).is_admin


def test_csp_carries_nonce_and_relaxes_only_outside_production():
    prod = content_security_policy("abc123", production=True)
    dev = content_security_policy("abc123", production=False)

    assert "script-src 'self' 'nonce-abc123'" in prod
    assert "'unsafe-eval'" not in prod
    assert "'unsafe-eval'" in dev
    assert "img-src 'self' data: https: https://covers.openlibrary.org" in prod
    assert "object-src 'none'" in prod
