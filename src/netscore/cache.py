"""Bounded in-memory cache with per-entry expiry."""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Generic, TypeVar

V = TypeVar("V")


class ExpiringCache(Generic[V]):
    """Key/value cache with FIFO eviction and time-to-live expiry.

    Entries are evicted in insertion order once ``max_size`` is reached.
    Expired entries are dropped lazily when read through ``get`` or ``has``,
    or eagerly with ``clean_expired``.

    Usage:
        cache = ExpiringCache[str](max_size=128, ttl=900)
        cache.set("lodash", "https://github.com/lodash/lodash")
        cache.get("lodash")
    """

    def __init__(
        self,
        max_size: int,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            max_size: Maximum number of entries held at once.
            ttl: Default time-to-live in seconds.
            clock: Monotonic time source, injectable for tests.
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, tuple[V, float]] = OrderedDict()

    def set(self, key: str, value: V, ttl: float | None = None) -> None:
        expiry = self._clock() + (self.ttl if ttl is None else ttl)
        if key in self._entries:
            # Re-setting moves the key to the back of the eviction order
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
        self._entries[key] = (value, expiry)

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expiry = entry
        if expiry < self._clock():
            del self._entries[key]
            return None
        return value

    def has(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry[1] < self._clock():
            del self._entries[key]
            return False
        return True

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def clean_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, (_, expiry) in self._entries.items() if expiry < now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
