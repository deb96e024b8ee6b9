"""Read-side cache for backend views such as module details."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Hashable

from coursetree.config import COURSETREE_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

CacheKey = tuple[Hashable, ...]

MODULES_KEY: CacheKey = ("modules-all",)


def module_detail_key(pk: int) -> CacheKey:
    """Cache key of one module's detail view."""
    return ("module-detail", pk)


@dataclass
class CacheEntry:
    """A cached value plus the bookkeeping needed to decide freshness."""

    value: Any
    fetched_at: datetime
    stale: bool = False


def is_entry_fresh(entry: CacheEntry | None, ttl_seconds: int, now: datetime | None = None) -> bool:
    """Check if a cached entry can be served without refetching.

    Args:
        entry: The cached entry, or None if nothing is cached.
        ttl_seconds: Time-to-live in seconds. If <= 0, an entry stays fresh
            until it is invalidated.
        now: Reference time, defaults to the current UTC time.

    Returns:
        True if the entry exists, was not invalidated and is within its TTL.
    """
    if entry is None or entry.stale:
        return False
    if ttl_seconds <= 0:
        return True
    now = now or datetime.now(timezone.utc)
    return (now - entry.fetched_at).total_seconds() <= ttl_seconds


class ReadCache:
    """Keyed in-memory cache with explicit invalidation.

    An invalidated key is never served again: ``get`` calls the loader, and
    a load that was already running when the key was invalidated stores its
    result as stale.
    """

    def __init__(self, ttl_seconds: int = COURSETREE_CACHE_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._generations: dict[CacheKey, int] = {}
        self._inflight: dict[CacheKey, asyncio.Task[Any]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def peek(self, key: CacheKey) -> CacheEntry | None:
        return self._entries.get(key)

    def is_stale(self, key: CacheKey) -> bool:
        return not is_entry_fresh(self._entries.get(key), self.ttl_seconds)

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, fetched_at=datetime.now(timezone.utc))

    async def get(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for ``key`` or load it.

        Concurrent callers for the same key share one load.
        """
        entry = self._entries.get(key)
        if is_entry_fresh(entry, self.ttl_seconds):
            return entry.value

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, loader))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(task)

    def invalidate(self, key: CacheKey) -> bool:
        """Mark ``key`` stale; returns whether an entry was cached."""
        self._generations[key] = self._generations.get(key, 0) + 1
        entry = self._entries.get(key)
        if entry is not None:
            entry.stale = True
        logger.debug("Invalidated cache entry", extra={"key": key, "cached": entry is not None})
        return entry is not None

    def keys_with_prefix(self, prefix: CacheKey) -> list[CacheKey]:
        return [key for key in self._entries if key[: len(prefix)] == prefix]

    def invalidate_prefix(self, prefix: CacheKey) -> list[CacheKey]:
        """Invalidate every cached key that starts with ``prefix``."""
        keys = self.keys_with_prefix(prefix)
        for key in keys:
            self.invalidate(key)
        return keys

    async def _load(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        generation = self._generations.get(key, 0)
        value = await loader()
        self.set(key, value)
        if self._generations.get(key, 0) != generation:
            self._entries[key].stale = True
        return value
