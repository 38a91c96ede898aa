"""Row conversion helpers shared by Supabase repositories."""

from datetime import datetime

from postgrest.exceptions import APIError

_UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: APIError) -> bool:
    """Return true when PostgREST reports a unique constraint violation."""
    return str(getattr(exc, "code", "")) == _UNIQUE_VIOLATION


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a timestamptz column value."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
