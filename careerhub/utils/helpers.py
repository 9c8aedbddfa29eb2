"""Small shared helpers: ids and timestamps."""

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Opaque entity id, identical scheme for every backend."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    """
    Naive UTC now, truncated to milliseconds.
    MongoDB keeps millisecond precision only, so both backends round-trip
    the same value.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)
