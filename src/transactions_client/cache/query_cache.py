"""Query snapshot cache with stale-while-revalidate refresh."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Generic, TypeVar

from transactions_client.utils.time import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryKey = tuple[Any, ...]
Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class Snapshot(Generic[T]):
    data: T
    fetched_at: datetime
    invalidated: bool = False

    def is_fresh(self, now: datetime, stale_seconds: int) -> bool:
        if self.invalidated:
            return False
        return now < self.fetched_at + timedelta(seconds=stale_seconds)


def key_matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    """One snapshot per query key, refreshed through caller-supplied fetchers.

    Reads inside the staleness window are served from memory. Expired
    snapshots are refetched, either awaited (``urgent=True``) or in the
    background while the expired data is returned. Invalidated snapshots are
    never returned by :meth:`fetch`; they stay visible through :meth:`peek`.

    Concurrent reads of one key share a single fetch. Fetches are shielded, so
    a caller that stops waiting does not cancel the remote call.
    """

    def __init__(
        self,
        stale_seconds: int,
        max_entries: int = 256,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._stale_seconds = stale_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[QueryKey, Snapshot[Any]] = OrderedDict()
        self._in_flight: dict[QueryKey, asyncio.Task[Any]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()
        # Fetches started before an invalidation; their results are discarded.
        self._detached: set[asyncio.Task[Any]] = set()

    async def fetch(self, key: QueryKey, fetcher: Fetcher, *, urgent: bool = True) -> Any:
        entry = self._entries.get(key)
        if entry is not None and not entry.invalidated:
            self._entries.move_to_end(key)
            if entry.is_fresh(self._clock(), self._stale_seconds):
                return entry.data
            if not urgent:
                self._start_refresh(key, fetcher)
                return entry.data

        task = self._start_refresh(key, fetcher)
        return await asyncio.shield(task)

    def peek(self, key: QueryKey) -> Snapshot[Any] | None:
        return self._entries.get(key)

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or not entry.is_fresh(self._clock(), self._stale_seconds)

    def is_fetching(self, key: QueryKey) -> bool:
        return key in self._in_flight

    def invalidate(self, prefix: QueryKey) -> int:
        """Mark every snapshot whose key starts with ``prefix`` as invalidated."""
        count = 0
        for key, entry in self._entries.items():
            if key_matches(key, prefix) and not entry.invalidated:
                entry.invalidated = True
                count += 1
        # Reads after an invalidation must not join a fetch that started before
        # it, and that fetch must not overwrite what they store.
        for key in [k for k in self._in_flight if key_matches(k, prefix)]:
            self._detached.add(self._in_flight.pop(key))
        if count:
            logger.debug("Invalidated %d snapshot(s) under %r", count, prefix)
        return count

    def clear(self) -> None:
        self._entries.clear()

    async def wait_idle(self) -> None:
        """Wait for every in-flight fetch, including background refreshes."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _start_refresh(self, key: QueryKey, fetcher: Fetcher) -> asyncio.Task[Any]:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._run_fetch(key, fetcher))
            self._in_flight[key] = task
            self._tasks.add(task)
            task.add_done_callback(lambda done: self._on_fetch_done(key, done))
        return task

    async def _run_fetch(self, key: QueryKey, fetcher: Fetcher) -> Any:
        data = await fetcher()
        if asyncio.current_task() in self._detached:
            logger.debug("Discarding result of %r fetched before invalidation", key)
            return data
        self._entries[key] = Snapshot(data=data, fetched_at=self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
        return data

    def _on_fetch_done(self, key: QueryKey, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        self._detached.discard(task)
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Refresh of %r failed: %s", key, exc)
