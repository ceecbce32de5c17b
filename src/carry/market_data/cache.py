"""Last-known-good snapshot cache with a time-to-live.

Owned by the scheduler and injected into the MarketDataService; it holds
the most recent successfully fetched snapshot set so a failed fetch can be
served from memory until the entry expires.
"""

import asyncio
import copy
import time
from collections.abc import Callable

from carry.models import MarketSnapshot


class SnapshotCache:
    """Single-entry snapshot cache guarded by an asyncio.Lock.

    Args:
        ttl_seconds: How long a stored snapshot set stays servable.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshots: list[MarketSnapshot] | None = None
        self._stored_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    async def store(self, snapshots: list[MarketSnapshot]) -> None:
        async with self._lock:
            self._snapshots = copy.deepcopy(snapshots)
            self._stored_at = self._clock()

    async def get_fresh(self) -> list[MarketSnapshot] | None:
        """Return a copy of the cached snapshots if younger than the TTL."""
        async with self._lock:
            if self._snapshots is None or self._stored_at is None:
                return None
            if self._clock() - self._stored_at > self._ttl:
                return None
            return copy.deepcopy(self._snapshots)

    async def get_age(self) -> float | None:
        """Seconds since the last store, or None if nothing was stored."""
        async with self._lock:
            if self._stored_at is None:
                return None
            return self._clock() - self._stored_at
