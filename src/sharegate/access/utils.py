"""Datetime normalization, expiry checks, tokens, and URL helpers."""

from __future__ import annotations

import posixpath
import secrets
from datetime import UTC, datetime

DEFAULT_TOKEN_BYTES = 16


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return *value* as an aware UTC datetime.

    Naive values (SQLite drops tzinfo on read) are taken to be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_active(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """A grant or link is active when it never expires or expires in the future."""
    if expires_at is None:
        return True
    if now is None:
        now = datetime.now(UTC)
    exp = ensure_utc(expires_at)
    assert exp is not None
    return exp > now


def new_token(nbytes: int = DEFAULT_TOKEN_BYTES) -> str:
    """Generate a URL-safe link token with *nbytes* bytes of randomness."""
    return secrets.token_urlsafe(nbytes)


def file_type_from_name(name: str) -> str:
    """Lowercased extension of *name* without the dot, or ``""``."""
    ext = posixpath.splitext(name)[1]
    return ext[1:].lower()


def build_share_url(base: str, token: str) -> str:
    """Download URL for a share link: ``<base>/files/share/<token>/download``."""
    return f"{base.rstrip('/')}/files/share/{token}/download"
