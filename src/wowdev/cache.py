"""Bounded in-memory TTL cache with single-flight loading.

Entries live in a ``cachetools.TLRUCache`` (LRU eviction at capacity, lazy
expiry). An entry stays live while ``now - inserted_at <= ttl``.
Concurrent misses on the same key share one loader task; every waiter
receives that task's value or exception. Failed loads are never stored, so
the next ``get`` calls the loader again.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from functools import partial
from typing import Generic, TypeVar

import structlog
from cachetools import TLRUCache

from wowdev.models.cache import CacheEntry

log = structlog.get_logger()

V = TypeVar("V")


class SingleFlightTTLCache(Generic[V]):
    """Read-through cache keyed by string."""

    def __init__(
        self,
        loader: Callable[[str], Awaitable[V]],
        *,
        capacity: int,
        ttl_seconds: float,
        timer: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        self.name = name
        self._loader = loader
        self._ttl = ttl_seconds
        self._entries: TLRUCache[str, CacheEntry[V]] = TLRUCache(
            maxsize=capacity, ttu=self._expires_at, timer=timer
        )
        self._in_flight: dict[str, asyncio.Task[CacheEntry[V]]] = {}

    def _expires_at(self, key: str, entry: CacheEntry[V], now: float) -> float:
        # TLRUCache drops an entry once now >= expiry; step past the boundary.
        return math.nextafter(now + self._ttl, math.inf)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def peek(self, key: str) -> CacheEntry[V] | None:
        """Return a live entry without loading."""
        return self._entries.get(key)

    def clear(self) -> None:
        self._entries.clear()

    async def get(self, key: str) -> V:
        return (await self.lookup(key)).value

    async def lookup(self, key: str) -> CacheEntry[V]:
        """Return the entry for ``key``, loading it at most once per miss."""
        entry = self._entries.get(key)
        if entry is not None:
            return entry

        task = self._in_flight.get(key)
        if task is None:
            log.debug("cache_miss", cache=self.name, key=key)
            task = asyncio.create_task(self._load(key), name=f"{self.name}:{key}")
            self._in_flight[key] = task
            task.add_done_callback(partial(self._settle, key))
        # A cancelled waiter must not cancel the load other waiters share.
        return await asyncio.shield(task)

    async def _load(self, key: str) -> CacheEntry[V]:
        value = await self._loader(key)
        entry = CacheEntry(key=key, value=value, inserted_at=datetime.now(UTC))
        self._entries[key] = entry
        return entry

    def _settle(self, key: str, task: asyncio.Task[CacheEntry[V]]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.warning("cache_load_failed", cache=self.name, key=key, error=str(exc))
