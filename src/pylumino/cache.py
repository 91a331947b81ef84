"""Flat string-keyed cache with per-entry expiry.

The cache knows nothing about stores: callers encode whatever structure
they need into the key (``f"user-{user_id}"``). Expiry is evaluated when an
entry is read. Expired entries that are never read stay in memory until
:meth:`TTLCache.purge_expired` runs or the optional size bound evicts them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from pylumino.config import DEFAULT_CACHE_TTL
from pylumino.exceptions import LuminoConfigError
from pylumino.state.models import CacheEntry
from pylumino.state.policy import is_expired, normalize_ttl, utcnow

_logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value cache whose entries become unreadable after their TTL."""

    def __init__(
        self,
        *,
        default_ttl: float | timedelta = DEFAULT_CACHE_TTL,
        max_entries: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if max_entries is not None and max_entries <= 0:
            raise LuminoConfigError("max_entries must be positive or None")
        self._default_ttl = normalize_ttl(default_ttl)
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, CacheEntry] = {}

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    def set(self, key: str, value: Any, ttl: float | timedelta | None = None) -> None:
        """Store *value*, replacing any previous entry for *key*.

        ``ttl`` defaults to the cache's default TTL; ``0`` stores an entry
        that is already expired.
        """
        delta = self._default_ttl if ttl is None else normalize_ttl(ttl)
        with self._lock:
            # Re-inserting moves the key to the end, so eviction order
            # follows the most recent write.
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + delta)
            if self._max_entries is not None and len(self._entries) > self._max_entries:
                self._evict()

    def lookup(self, key: str) -> CacheEntry | None:
        """Return the live entry for *key*, or ``None`` on a miss.

        Unlike :meth:`get`, a cached ``None`` value is distinguishable
        from a miss.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if is_expired(self._clock(), entry.expires_at):
                del self._entries[key]
                return None
            return entry

    def get(self, key: str) -> Any | None:
        entry = self.lookup(key)
        return None if entry is None else entry.value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if is_expired(now, entry.expires_at)]
            for key in expired:
                del self._entries[key]
        if expired:
            _logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    def _evict(self) -> None:
        assert self._max_entries is not None
        self.purge_expired()
        overflow = len(self._entries) - self._max_entries
        if overflow <= 0:
            return
        for key in list(self._entries)[:overflow]:
            del self._entries[key]
        _logger.debug("Evicted %d oldest cache entries (max_entries=%d)", overflow, self._max_entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet purged."""
        return len(self._entries)
