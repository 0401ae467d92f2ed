"""
Timestamp and identifier helpers shared by the services.

Timestamps are UTC, truncated to milliseconds and rendered as
ISO-8601 strings with a ``Z`` suffix.  Storing and emitting the same
precision lets clients echo a timestamp back (e.g. as
``lastSeenTimestamp``) and compare it exactly against stored values.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Naive values are taken to be UTC.  Returns ``None`` when the
    string cannot be parsed.
    """
    if not value or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        # Instants at the edges of the datetime range overflow on conversion.
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def now_iso() -> str:
    return format_timestamp(utcnow())


def new_id() -> str:
    """Opaque document identifier."""
    return uuid.uuid4().hex
