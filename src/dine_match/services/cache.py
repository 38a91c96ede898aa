"""Simple TTL cache."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""

    def delete(self, key: str) -> None:
        """Drop a cached value."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


class InMemoryCache(Cache):
    """Process-local cache for candidate lists."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._entries: dict[str, _CacheEntry] = {}
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def get(self, key: str) -> object | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
