"""Opaque single-use tokens for email verification and password recovery."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from utils.clock import utcnow

TOKEN_BYTES = 32
RECOVERY_TOKEN_LIFETIME = timedelta(hours=1)


def generate_opaque_token() -> str:
    """Return a random 64 character hex string."""

    return secrets.token_hex(TOKEN_BYTES)


def recovery_expiry(now: datetime | None = None) -> datetime:
    return (now or utcnow()) + RECOVERY_TOKEN_LIFETIME
