"""In-process key-value store with per-entry expiration.

Entries carry an absolute expiry instant on the store's clock. Reads compare
against that instant, so an expired entry behaves as missing whether or not
it has been evicted yet. Eviction of dead entries is passive (on ``set`` or
an explicit ``purge_expired``).
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, TypeVar

from unsubscribe_service.core.errors import CacheTypeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Passive eviction runs at most once per this many writes
_PURGE_EVERY = 256

# Keys embed live tokens; log lines carry only this many leading characters
_LOGGED_KEY_CHARS = 16


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at: float


def _to_seconds(ttl: timedelta | float) -> float:
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


def _log_key(key: str) -> str:
    if len(key) <= _LOGGED_KEY_CHARS:
        return key
    return f"{key[:_LOGGED_KEY_CHARS]}..."


class ExpiringStore:
    """Thread-safe string-keyed store with lazy TTL expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._writes = 0

    def set(self, key: str, value: Any, ttl: timedelta | float) -> None:
        """Store ``value`` under ``key`` for ``ttl``, replacing any prior entry and TTL."""
        logger.info("Setting cache for key: %s", _log_key(key))
        expires_at = self._clock() + _to_seconds(ttl)
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)
            self._writes += 1
            if self._writes % _PURGE_EVERY == 0:
                self._purge_locked()

    def get(self, key: str, value_type: type[T]) -> T | None:
        """Return the live value under ``key``, or None if missing or expired.

        Raises:
            CacheTypeError: If the live value is not a ``value_type``.
        """
        with self._lock:
            entry = self._live_entry(key)
        return self._checked(key, entry, value_type)

    def pop(self, key: str, value_type: type[T]) -> T | None:
        """Atomically return and remove the live value under ``key``.

        Exactly one of several concurrent callers racing on the same key gets
        the value; the rest see None.
        """
        with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                self._check_type(key, entry, value_type)
                del self._entries[key]
        if entry is not None:
            logger.info("Removing cache for key: %s", _log_key(key))
        return self._checked(key, entry, value_type)

    def remove(self, key: str) -> None:
        """Delete ``key`` if present. Removing a missing key is a no-op."""
        logger.info("Removing cache for key: %s", _log_key(key))
        with self._lock:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Evict every expired entry and return how many were dropped."""
        with self._lock:
            return self._purge_locked()

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry.expires_at > now)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            return self._live_entry(key, log=False) is not None

    # Caller must hold self._lock for the helpers below

    def _live_entry(self, key: str, *, log: bool = True) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is not None and entry.expires_at <= self._clock():
            del self._entries[key]
            entry = None
        if log:
            if entry is None:
                logger.warning("Cache miss for key: %s", _log_key(key))
            else:
                logger.info("Cache hit for key: %s", _log_key(key))
        return entry

    def _purge_locked(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    @staticmethod
    def _check_type(key: str, entry: CacheEntry, value_type: type) -> None:
        if not isinstance(entry.value, value_type):
            raise CacheTypeError(key, value_type, type(entry.value))

    def _checked(self, key: str, entry: CacheEntry | None, value_type: type[T]) -> T | None:
        if entry is None:
            return None
        self._check_type(key, entry, value_type)
        value: T = entry.value
        return value
