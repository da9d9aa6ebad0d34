"""Read-through query cache keyed by resource path.

**Entry lifecycle:**

1. **Empty**: nothing has been fetched for the key
2. **Loading**: a fetch is in flight; further readers join it
3. **Fresh**: the payload may be served without a network call
4. **Stale**: invalidated, or older than ``stale_time``; the next reader fetches

**Consistency rules:**

- Concurrent readers of one key share a single in-flight fetch.
- Invalidating a key also invalidates the keys derived from it: the same path
  with a query string, and every sub-path.
- A reader arriving after :meth:`QueryCache.invalidate` never joins a fetch
  that started before the invalidation; it starts a new one.
- A fetch that was overtaken by an invalidation still stores its payload, but
  as stale. The last fetch to complete wins.
- A failed fetch leaves the entry exactly as it was.
- A fetch that started before :meth:`QueryCache.clear` stores nothing.
- Readers await fetches through :func:`asyncio.shield`; cancelling a reader
  never cancels the fetch, which still updates the cache when it completes.

**Example Usage:**

.. code-block:: python

    cache = QueryCache(api.request, stale_time=30)
    transactions = await cache.get("/api/transactions")
    cache.add_record("/api/transactions", new_transaction)
    cache.invalidate("/api/transactions")
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from .http import RequestFunction

LOGGER = logging.getLogger(__name__)


class EntryStatus(StrEnum):
    """Observable state of a cache entry."""

    EMPTY = "empty"
    LOADING = "loading"
    FRESH = "fresh"
    STALE = "stale"


@dataclass
class CacheEntry:
    """Cached payload for one resource key.

    :param key: Resource key
    :param payload: Last stored payload
    :param fetched_at: Clock reading of the fetch that produced the payload;
        None if the payload never came from the server
    :param invalidated: Explicitly marked stale
    :param generation: Incremented by every invalidation
    """

    key: str
    payload: Any = None
    fetched_at: float | None = None
    invalidated: bool = False
    generation: int = 0

    @property
    def has_payload(self) -> bool:
        return self.fetched_at is not None or self.payload is not None

    def is_stale(self, now: float, stale_time: float | None) -> bool:
        if self.invalidated or self.fetched_at is None:
            return True
        if stale_time is None:
            return False
        return now - self.fetched_at >= stale_time


@dataclass
class _InFlight:
    generation: int
    task: asyncio.Task[Any] = field(repr=False)


def _retrieve_exception(task: asyncio.Task[Any]) -> None:
    """Mark a fetch's exception as retrieved when every reader has gone away."""
    if not task.cancelled():
        task.exception()


class QueryCache:
    """Cache of server resource collections with request de-duplication.

    There is one instance per running application; it is created by the
    application context and handed to whatever needs it.
    """

    def __init__(
        self,
        request: RequestFunction,
        *,
        stale_time: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create an empty cache.

        :param request: Network request function used for GET fetches
        :param stale_time: Seconds a fetched payload stays fresh, None for no
            time-based staleness
        :param clock: Monotonic clock, injectable for tests
        """
        self._request = request
        self.stale_time = stale_time
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, _InFlight] = {}
        self._epoch = 0

    def _entry(self, key: str) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CacheEntry(key)
        return entry

    def status(self, key: str) -> EntryStatus:
        """Return the current state of the entry for a key."""
        if key in self._in_flight:
            return EntryStatus.LOADING

        entry = self._entries.get(key)
        if entry is None or not entry.has_payload:
            return EntryStatus.EMPTY
        if entry.is_stale(self._clock(), self.stale_time):
            return EntryStatus.STALE
        return EntryStatus.FRESH

    def peek(self, key: str) -> Any:
        """Return the stored payload without fetching, stale or not."""
        entry = self._entries.get(key)
        return entry.payload if entry else None

    async def get(self, key: str) -> Any:
        """Return the payload for a key, fetching it if needed.

        :param key: Resource key
        :return: The cached or freshly fetched payload
        :raises Exception: Whatever the request function raised for the fetch
        """
        entry = self._entry(key)
        if not entry.is_stale(self._clock(), self.stale_time):
            return entry.payload

        in_flight = self._in_flight.get(key)
        if in_flight is not None and in_flight.generation == entry.generation:
            LOGGER.debug("Joining in-flight fetch for %s", key)
            task = in_flight.task
        else:
            task = self._start_fetch(entry)

        return await asyncio.shield(task)

    async def refetch(self, key: str) -> Any:
        """Fetch a key unconditionally and replace its entry.

        :param key: Resource key
        :return: The freshly fetched payload
        """
        task = self._start_fetch(self._entry(key))
        return await asyncio.shield(task)

    def invalidate(self, key: str) -> None:
        """Mark a key and every key derived from it stale without fetching.

        A key is derived from ``key`` when it extends it with a query string or
        a sub-path, so ``/api/transactions`` also covers
        ``/api/transactions?project_id=1`` and ``/api/transactions/7``.
        """
        self._mark_stale(self._entry(key))
        for entry in list(self._entries.values()):
            if _derived_from(entry.key, key):
                self._mark_stale(entry)

    def invalidate_all(self) -> None:
        """Mark every entry stale."""
        for entry in list(self._entries.values()):
            self._mark_stale(entry)

    @staticmethod
    def _mark_stale(entry: CacheEntry) -> None:
        entry.invalidated = True
        entry.generation += 1
        LOGGER.debug("Invalidated %s", entry.key)

    def clear(self) -> None:
        """Drop every entry. Fetches already in flight are discarded on arrival."""
        self._epoch += 1
        self._entries.clear()
        self._in_flight.clear()

    def _start_fetch(self, entry: CacheEntry) -> asyncio.Task[Any]:
        generation = entry.generation
        task = asyncio.get_running_loop().create_task(
            self._fetch(entry.key, generation, self._epoch),
        )
        task.add_done_callback(_retrieve_exception)
        self._in_flight[entry.key] = _InFlight(generation, task)
        LOGGER.debug("Fetching %s (generation %d)", entry.key, generation)
        return task

    async def _fetch(self, key: str, generation: int, epoch: int) -> Any:
        try:
            payload = await self._request("GET", key)
        finally:
            in_flight = self._in_flight.get(key)
            if in_flight is not None and in_flight.task is asyncio.current_task():
                del self._in_flight[key]

        if epoch != self._epoch:
            LOGGER.debug("Discarding %s fetched before the cache was cleared", key)
            return payload

        entry = self._entry(key)
        entry.payload = payload
        entry.fetched_at = self._clock()
        entry.invalidated = generation != entry.generation
        return payload

    def set_data(self, key: str, updater: Callable[[Any], Any]) -> Any:
        """Replace a payload locally with ``updater(old_payload)``.

        No network call is made and the entry's freshness is unchanged; an
        entry that was never fetched stays stale.

        :param key: Resource key
        :param updater: Function from the old payload (None if empty) to the new
        :return: The new payload
        """
        entry = self._entry(key)
        entry.payload = updater(entry.payload)
        return entry.payload

    def add_record(self, key: str, record: Any) -> Any:
        """Prepend a record to a cached collection."""

        def add(old: Any) -> list[Any]:
            if isinstance(old, list):
                return [record, *old]
            return [record]

        return self.set_data(key, add)

    def remove_record(self, key: str, record_id: Any) -> Any:
        """Remove the record with the given id from a cached collection."""

        def remove(old: Any) -> Any:
            if isinstance(old, list):
                return [item for item in old if _record_id(item) != record_id]
            return old

        return self.set_data(key, remove)

    def update_record(self, key: str, record: Any) -> Any:
        """Replace the record sharing ``record``'s id in a cached collection."""
        record_id = _record_id(record)

        def update(old: Any) -> Any:
            if isinstance(old, list):
                return [
                    record if _record_id(item) == record_id else item for item in old
                ]
            return old

        return self.set_data(key, update)


def _derived_from(key: str, resource: str) -> bool:
    return key.startswith((f"{resource}?", f"{resource}/"))


def _record_id(record: Any) -> Any:
    if isinstance(record, dict):
        return record.get("id")
    return getattr(record, "id", None)
