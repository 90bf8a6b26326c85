"""In-memory LRU cache with size bound and expiring entries.

Values are produced by a caller-supplied retrieval function, called with the
key and the previously cached value (``None`` on a cold miss). Expiration is
checked lazily on read; there is no background sweep. When the cache is full
the least recently used entry is evicted, never the entry being written.

Retrieval failures propagate to the caller of :meth:`LRUCache.get` and leave
the cache unchanged: no stale value is served in place of a failed refresh.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

import structlog

if TYPE_CHECKING:
    from datetime import timedelta

log = structlog.get_logger()

KeyType = TypeVar("KeyType", bound=Hashable)
ValType = TypeVar("ValType")


@dataclass
class CacheEntry(Generic[ValType]):
    value: ValType
    creation_time: float


class LRUCache(Generic[KeyType, ValType]):
    """Size-bounded, time-bounded cache refreshed through a retrieval function."""

    def __init__(
        self,
        max_cache_items: int,
        expiration_horizon: timedelta,
        retrieval_function: Callable[[KeyType, ValType | None], ValType],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_cache_items < 1:
            raise ValueError(f"max_cache_items must be >= 1, got {max_cache_items}")
        self._max_cache_items = max_cache_items
        self._expiration_seconds = expiration_horizon.total_seconds()
        self._retrieval_function = retrieval_function
        self._clock = clock
        self._lru_cache: OrderedDict[KeyType, CacheEntry[ValType]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._lru_cache)

    def __contains__(self, key: object) -> bool:
        return key in self._lru_cache

    def clear(self) -> None:
        """Delete all entries. Safe to call on an empty cache."""
        self._lru_cache.clear()

    def get(self, key: KeyType, data_source_fallback: bool = True) -> ValType:
        """Return the value for ``key``, fetching it if absent or expired.

        With ``data_source_fallback=False`` the retrieval function is never
        called and a ``KeyError`` is raised for a missing or expired key.
        """
        entry = self._lru_cache.get(key)
        if entry is not None and not self._is_expired(entry):
            self._lru_cache.move_to_end(key)
            return entry.value

        if not data_source_fallback:
            if entry is None:
                raise KeyError(f"{key!r} not found in LRUCache!")
            raise KeyError(
                f"{key!r} has aged beyond allowed time of {self._expiration_seconds}s. "
                f"Element created at {entry.creation_time}."
            )
        return self.put(key)

    def put(self, key: KeyType, value: ValType | None = None) -> ValType:
        """Store ``value`` for ``key``, or fetch it when ``value`` is ``None``.

        The old value for ``key`` (if any) is handed to the retrieval function
        so it can decide whether a full refresh is needed.
        """
        previous = self._lru_cache.get(key)
        if value is None:
            value = self._retrieval_function(key, previous.value if previous is not None else None)

        self._lru_cache.pop(key, None)
        while len(self._lru_cache) >= self._max_cache_items:
            evicted_key, _ = self._lru_cache.popitem(last=False)
            log.debug("lru_cache_evicted", key=repr(evicted_key))

        self._lru_cache[key] = CacheEntry(value=value, creation_time=self._clock())
        return value

    def _is_expired(self, entry: CacheEntry[ValType]) -> bool:
        return self._clock() - entry.creation_time >= self._expiration_seconds
