"""Per-session query cache.

Stores the typed result of each query under its QueryKey together with a
staleness deadline. Reads return the cached result while it is fresh and
otherwise run the query's fetcher, with three guarantees:

- Coalescing: for one key at most one fetch is in flight. A second
  trigger awaits the running fetch instead of starting another.
- Superseded results are discarded: every fetch is tagged with the key's
  generation at start. ``cancel`` and ``invalidate`` bump the generation,
  so a response that arrives afterwards is handed to its caller but never
  written to the cache. A new fetch for such a key waits for the
  superseded one to finish before it starts.
- Last good data survives errors: a failed fetch records the error on
  the entry and keeps its previous data.

Nothing is retried automatically and no timeout is imposed here beyond
the transport's own.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import math
import time
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Union

from checkpointer.services.cache_sync import (
    MutationIntent,
    RequiresRefetch,
    SyncResult,
    apply_mutation,
)
from checkpointer.services.query_keys import QueryKey

if TYPE_CHECKING:
    from checkpointer.services.queries import QueryOptions

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
KeySelector = Union[QueryKey, str, Iterable[QueryKey]]


class CacheStatus(str, Enum):
    """Lifecycle of a cache entry."""

    PENDING = "pending"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class CacheEntry:
    """Cached result of one query.

    Attributes:
        data: Last good result, or None before the first success
        status: pending while a fetch runs, ready after a success, error
            after a failure
        stale_at: Clock value from which the entry counts as stale
        updated_at: Clock value of the last successful write
        error: The last failure, cleared by the next success
    """

    data: Any = None
    status: CacheStatus = CacheStatus.PENDING
    stale_at: float = -math.inf
    updated_at: float | None = None
    error: BaseException | None = None

    @property
    def has_data(self) -> bool:
        return self.data is not None


@dataclass
class _InFlight:
    task: asyncio.Task
    generation: int


def _consume_result(task: asyncio.Task) -> None:
    # callers re-raise the error; this only silences "never retrieved"
    if not task.cancelled():
        task.exception()


class QueryCache:
    """Query cache owned by one client session.

    Args:
        clock: Monotonic clock in seconds (injectable for tests)
        default_stale_time: Stale time of queries that do not give one
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        default_stale_time: float = 0.0,
    ) -> None:
        self._clock = clock
        self.default_stale_time = default_stale_time
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._inflight: dict[QueryKey, _InFlight] = {}
        self._generations: dict[QueryKey, int] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_entry(self, key: QueryKey) -> CacheEntry | None:
        return self._entries.get(key)

    def get_data(self, key: QueryKey) -> Any:
        """Cached data of ``key`` regardless of staleness, or None."""
        entry = self._entries.get(key)
        return entry.data if entry else None

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def is_stale(self, key: QueryKey) -> bool:
        """Whether ``key`` needs a refetch on next access.

        Missing, pending and errored entries always do; ready entries once
        the clock reaches their ``stale_at``.
        """
        entry = self._entries.get(key)
        if entry is None or entry.status is not CacheStatus.READY:
            return True
        return self._clock() >= entry.stale_at

    def is_fetching(self, key: QueryKey) -> bool:
        return key in self._inflight

    def _generation(self, key: QueryKey) -> int:
        return self._generations.get(key, 0)

    async def fetch(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        *,
        stale_time: float | None = None,
        force: bool = False,
    ) -> Any:
        """Return the result of ``key``, fetching it when needed.

        Args:
            key: Cache key of the query
            fetcher: Coroutine function performing the request
            stale_time: Seconds the result stays fresh (``math.inf``: never stale)
            force: Fetch even when the cached result is fresh

        Returns:
            The fresh cached result, or the result of the (possibly shared)
            fetch

        Raises:
            Whatever the fetcher raises, unchanged
        """
        if not force and not self.is_stale(key):
            logger.debug("Cache hit: %s", key)
            return self._entries[key].data

        while True:
            inflight = self._inflight.get(key)
            if inflight is None:
                break
            if inflight.generation == self._generation(key):
                logger.debug("Joining in-flight fetch: %s", key)
                return await asyncio.shield(inflight.task)
            # queued behind a superseded fetch of the same key
            await asyncio.wait({inflight.task})

        generation = self._generation(key)
        entry = self._entries.get(key) or CacheEntry()
        self._entries[key] = dataclasses.replace(entry, status=CacheStatus.PENDING)

        task = asyncio.ensure_future(
            self._run(key, fetcher, self.default_stale_time if stale_time is None else stale_time, generation)
        )
        task.add_done_callback(_consume_result)
        self._inflight[key] = _InFlight(task, generation)
        logger.debug("Cache miss, fetching: %s", key)
        return await asyncio.shield(task)

    async def fetch_query(self, options: QueryOptions, *, force: bool = False) -> Any:
        """``fetch`` driven by a QueryOptions bundle."""
        return await self.fetch(
            options.key,
            options.fetcher,
            stale_time=options.stale_time,
            force=force,
        )

    async def _run(self, key: QueryKey, fetcher: Fetcher, stale_time: float, generation: int) -> Any:
        try:
            data = await fetcher()
        except Exception as e:
            if self._generation(key) == generation:
                entry = self._entries.get(key) or CacheEntry()
                self._entries[key] = dataclasses.replace(entry, status=CacheStatus.ERROR, error=e)
            else:
                logger.debug("Discarding failure of superseded fetch: %s", key)
            raise
        finally:
            current = self._inflight.get(key)
            if current is not None and current.generation == generation:
                del self._inflight[key]

        if self._generation(key) != generation:
            logger.debug("Discarding response of superseded fetch: %s", key)
            return data

        now = self._clock()
        self._entries[key] = CacheEntry(
            data=data,
            status=CacheStatus.READY,
            stale_at=now + stale_time,
            updated_at=now,
        )
        return data

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_data(self, key: QueryKey, data: Any, *, stale_time: float | None = None) -> CacheEntry:
        """Store ``data`` under ``key`` as a fresh ready result."""
        now = self._clock()
        stale_time = self.default_stale_time if stale_time is None else stale_time
        entry = CacheEntry(data=data, status=CacheStatus.READY, stale_at=now + stale_time, updated_at=now)
        self._entries[key] = entry
        return entry

    def match(self, prefix: str | QueryKey, **params: Any) -> list[QueryKey]:
        """Cached keys under ``prefix`` (see ``QueryKey.matches``)."""
        return [key for key in self._entries if key.matches(prefix, **params)]

    def _select(self, selector: KeySelector, **params: Any) -> list[QueryKey]:
        if isinstance(selector, QueryKey):
            return [selector]
        if isinstance(selector, str):
            return self.match(selector, **params)
        return list(selector)

    def invalidate(self, selector: KeySelector, **params: Any) -> list[QueryKey]:
        """Mark matching entries stale and supersede their in-flight fetches.

        Args:
            selector: A key, an entity prefix (``"admin"`` matches
                ``admin/users``) or several keys
            **params: With a prefix, only keys whose params also match

        Returns:
            The invalidated keys
        """
        keys = self._select(selector, **params)
        for key in keys:
            self._bump(key)
            entry = self._entries.get(key)
            if entry is not None:
                status = CacheStatus.READY if entry.status is CacheStatus.PENDING else entry.status
                self._entries[key] = dataclasses.replace(entry, stale_at=-math.inf, status=status)
        if keys:
            logger.debug("Invalidated %d cache entries", len(keys))
        return keys

    def cancel(self, key: QueryKey) -> None:
        """Mark the in-flight fetch of ``key`` (if any) as superseded.

        Its response will not be written; cached data is left as it was.
        """
        if key not in self._inflight:
            return
        self._bump(key)
        entry = self._entries.get(key)
        if entry is not None and entry.status is CacheStatus.PENDING:
            if entry.has_data or entry.error is not None:
                status = CacheStatus.ERROR if entry.error is not None else CacheStatus.READY
                self._entries[key] = dataclasses.replace(entry, status=status, stale_at=-math.inf)
            else:
                del self._entries[key]
        logger.debug("Superseded in-flight fetch: %s", key)

    def _bump(self, key: QueryKey) -> None:
        self._generations[key] = self._generation(key) + 1

    def remove(self, key: QueryKey) -> None:
        self.cancel(key)
        self._entries.pop(key, None)

    def remove_matching(self, selector: KeySelector, **params: Any) -> list[QueryKey]:
        """Drop matching entries, e.g. the detail of a deleted resource."""
        keys = self._select(selector, **params)
        for key in keys:
            self.remove(key)
        return keys

    def apply(
        self,
        key: QueryKey,
        intent: MutationIntent,
        *,
        require_fresh_view: bool = False,
    ) -> SyncResult:
        """Patch the cached result of ``key`` with a mutation.

        When the result cannot be patched locally the key is invalidated
        and RequiresRefetch is returned.
        """
        result = apply_mutation(
            key,
            intent,
            self._entries.get(key),
            require_fresh_view=require_fresh_view,
        )
        if isinstance(result, CacheEntry):
            self._entries[key] = result
        elif isinstance(result, RequiresRefetch):
            self.invalidate(key)
        return result

    def apply_matching(
        self,
        selector: KeySelector,
        intent: MutationIntent,
        **params: Any,
    ) -> dict[QueryKey, SyncResult]:
        """Apply ``intent`` to every cached key the selector matches."""
        return {key: self.apply(key, intent) for key in self._select(selector, **params)}

    async def optimistic(
        self,
        selector: KeySelector,
        intent: MutationIntent,
        server_call: Fetcher,
        *,
        reconcile: Callable[[Any], MutationIntent | None] | None = None,
    ) -> Any:
        """Apply a mutation locally, then confirm it with the server.

        In-flight fetches of the affected keys are superseded first so that
        they cannot overwrite the optimistic state. If ``server_call``
        fails every affected entry is restored and the error re-raised.
        On success ``reconcile`` may turn the server's answer into a
        follow-up mutation (typically replacing a placeholder).

        Returns:
            The result of ``server_call``
        """
        keys = self._select(selector)
        snapshots = {key: self._entries.get(key) for key in keys}

        for key in keys:
            self.cancel(key)
            self.apply(key, intent)

        try:
            result = await server_call()
        except Exception:
            for key, snapshot in snapshots.items():
                if snapshot is None:
                    self._entries.pop(key, None)
                else:
                    self._entries[key] = snapshot
            logger.debug("Rolled back optimistic %s on %d keys", intent.kind.value, len(keys))
            raise

        if reconcile is not None:
            follow_up = reconcile(result)
            if follow_up is not None:
                for key in keys:
                    self.apply(key, follow_up)
        return result

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Drop every entry and cancel every in-flight fetch."""
        for inflight in self._inflight.values():
            inflight.task.cancel()
        self._inflight.clear()
        self._entries.clear()
        self._generations.clear()

    async def close(self) -> None:
        tasks = [inflight.task for inflight in self._inflight.values()]
        self.clear()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> QueryCache:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


__all__ = ["CacheEntry", "CacheStatus", "Fetcher", "QueryCache"]
