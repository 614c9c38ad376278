"""Tests for the per-session query cache."""

import asyncio
import math

import pytest

from checkpointer.services.cache_sync import MutationIntent, RequiresRefetch
from checkpointer.services.query_cache import CacheStatus, QueryCache
from checkpointer.services.query_keys import derive_key
from checkpointer.shared.errors import NetworkError, ServerError

KEY = derive_key("game", {"id": "g1"})
OTHER = derive_key("game", {"id": "g2"})


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestFetch:
    """Test cache reads and staleness."""

    async def test_miss_then_hit(self, cache, clock) -> None:
        calls = []

        async def fetcher():
            calls.append(1)
            return {"name": "Hades"}

        assert await cache.fetch(KEY, fetcher, stale_time=60) == {"name": "Hades"}
        assert await cache.fetch(KEY, fetcher, stale_time=60) == {"name": "Hades"}

        assert len(calls) == 1
        entry = cache.get_entry(KEY)
        assert entry.status is CacheStatus.READY
        assert entry.updated_at == clock.now
        assert entry.stale_at == clock.now + 60

    async def test_refetch_after_stale_time(self, cache, clock) -> None:
        values = iter([1, 2])

        async def fetcher():
            return next(values)

        assert await cache.fetch(KEY, fetcher, stale_time=30) == 1
        clock.advance(29)
        assert await cache.fetch(KEY, fetcher, stale_time=30) == 1
        clock.advance(1)
        assert cache.is_stale(KEY)
        assert await cache.fetch(KEY, fetcher, stale_time=30) == 2

    async def test_zero_stale_time_always_refetches(self, cache) -> None:
        calls = []

        async def fetcher():
            calls.append(1)
            return len(calls)

        await cache.fetch(KEY, fetcher, stale_time=0)
        await cache.fetch(KEY, fetcher, stale_time=0)

        assert len(calls) == 2

    async def test_never_stale(self, cache, clock) -> None:
        async def fetcher():
            return "me"

        await cache.fetch(KEY, fetcher, stale_time=math.inf)
        clock.advance(10**9)

        assert not cache.is_stale(KEY)

    async def test_force_bypasses_freshness(self, cache) -> None:
        values = iter(["old", "new"])

        async def fetcher():
            return next(values)

        await cache.fetch(KEY, fetcher, stale_time=60)

        assert await cache.fetch(KEY, fetcher, stale_time=60, force=True) == "new"

    async def test_default_stale_time(self, clock) -> None:
        cache = QueryCache(clock=clock, default_stale_time=5)

        async def fetcher():
            return 1

        await cache.fetch(KEY, fetcher)

        assert cache.get_entry(KEY).stale_at == clock.now + 5


class TestCoalescing:
    """Test that identical in-flight requests share one fetch."""

    async def test_concurrent_triggers_share_one_call(self, cache, gate) -> None:
        first = asyncio.ensure_future(cache.fetch(KEY, gate, stale_time=60))
        second = asyncio.ensure_future(cache.fetch(KEY, gate, stale_time=60))
        await _settle()

        assert gate.calls == 1
        assert cache.is_fetching(KEY)
        assert cache.get_entry(KEY).status is CacheStatus.PENDING

        gate.release("result")

        assert await first == "result"
        assert await second == "result"
        assert not cache.is_fetching(KEY)

    async def test_different_keys_fetch_separately(self, cache, gate) -> None:
        first = asyncio.ensure_future(cache.fetch(KEY, gate))
        second = asyncio.ensure_future(cache.fetch(OTHER, gate))
        await _settle()

        assert gate.calls == 2
        gate.release("a", 0)
        gate.release("b", 1)
        assert await first == "a"
        assert await second == "b"

    async def test_cancelled_waiter_does_not_cancel_shared_fetch(self, cache, gate) -> None:
        first = asyncio.ensure_future(cache.fetch(KEY, gate, stale_time=60))
        second = asyncio.ensure_future(cache.fetch(KEY, gate, stale_time=60))
        await _settle()

        first.cancel()
        await _settle()
        gate.release("kept")

        assert await second == "kept"
        assert cache.get_data(KEY) == "kept"

    async def test_shared_failure_reaches_every_waiter(self, cache, gate) -> None:
        first = asyncio.ensure_future(cache.fetch(KEY, gate))
        second = asyncio.ensure_future(cache.fetch(KEY, gate))
        await _settle()

        gate.fail(ServerError("boom", status=500))

        with pytest.raises(ServerError):
            await first
        with pytest.raises(ServerError):
            await second
        assert gate.calls == 1


class TestErrors:
    """Test that failures keep the last good data."""

    async def test_error_keeps_previous_data(self, cache) -> None:
        async def ok():
            return ["a", "b"]

        async def failing():
            raise NetworkError("offline")

        await cache.fetch(KEY, ok, stale_time=0)

        with pytest.raises(NetworkError):
            await cache.fetch(KEY, failing)

        entry = cache.get_entry(KEY)
        assert entry.status is CacheStatus.ERROR
        assert entry.data == ["a", "b"]
        assert isinstance(entry.error, NetworkError)
        assert cache.is_stale(KEY)

    async def test_success_clears_error(self, cache) -> None:
        async def failing():
            raise NetworkError("offline")

        async def ok():
            return 1

        with pytest.raises(NetworkError):
            await cache.fetch(KEY, failing)

        await cache.fetch(KEY, ok)

        entry = cache.get_entry(KEY)
        assert entry.status is CacheStatus.READY
        assert entry.error is None

    async def test_first_failure_has_no_data(self, cache) -> None:
        async def failing():
            raise NetworkError("offline")

        with pytest.raises(NetworkError):
            await cache.fetch(KEY, failing)

        assert cache.get_entry(KEY).status is CacheStatus.ERROR
        assert cache.get_data(KEY) is None


class TestSupersession:
    """Test that late responses of superseded fetches are discarded."""

    async def test_cancel_discards_late_response(self, cache, gate) -> None:
        pending = asyncio.ensure_future(cache.fetch(KEY, gate))
        await _settle()

        cache.cancel(KEY)
        gate.release("late")

        # the caller still gets its answer
        assert await pending == "late"
        assert cache.get_entry(KEY) is None

    async def test_cancel_keeps_previous_data(self, cache, gate) -> None:
        cache.set_data(KEY, "shown", stale_time=0)
        pending = asyncio.ensure_future(cache.fetch(KEY, gate))
        await _settle()

        cache.cancel(KEY)
        gate.release("late")
        await pending

        entry = cache.get_entry(KEY)
        assert entry.data == "shown"
        assert entry.status is CacheStatus.READY
        assert cache.is_stale(KEY)

    async def test_cancel_without_fetch_is_noop(self, cache) -> None:
        cache.set_data(KEY, "x", stale_time=60)

        cache.cancel(KEY)

        assert not cache.is_stale(KEY)

    async def test_invalidate_during_fetch_discards_response(self, cache, gate) -> None:
        cache.set_data(KEY, "old", stale_time=60)
        pending = asyncio.ensure_future(cache.fetch(KEY, gate, force=True))
        await _settle()

        cache.invalidate(KEY)
        gate.release("from before the mutation")
        await pending

        assert cache.get_data(KEY) == "old"
        assert cache.is_stale(KEY)

    async def test_new_fetch_waits_for_superseded_one(self, cache, gate) -> None:
        first = asyncio.ensure_future(cache.fetch(KEY, gate))
        await _settle()
        cache.invalidate(KEY)

        second = asyncio.ensure_future(cache.fetch(KEY, gate))
        await _settle()
        assert gate.calls == 1

        gate.release("stale answer", 0)
        await first
        await _settle()
        assert gate.calls == 2

        gate.release("fresh answer", 1)
        assert await second == "fresh answer"
        assert cache.get_data(KEY) == "fresh answer"

    async def test_superseded_failure_is_not_recorded(self, cache, gate) -> None:
        cache.set_data(KEY, "good", stale_time=60)
        pending = asyncio.ensure_future(cache.fetch(KEY, gate, force=True))
        await _settle()

        cache.cancel(KEY)
        gate.fail(NetworkError("offline"))
        with pytest.raises(NetworkError):
            await pending

        assert cache.get_entry(KEY).status is CacheStatus.READY
        assert cache.get_entry(KEY).error is None


class TestInvalidation:
    async def test_invalidate_by_prefix_and_params(self, cache) -> None:
        h1 = derive_key("play-history", {"userId": "u1", "limit": 20})
        h2 = derive_key("play-history", {"userId": "u2", "limit": 20})
        for key in (h1, h2, KEY):
            cache.set_data(key, "x", stale_time=60)

        invalidated = cache.invalidate("play-history", userId="u1")

        assert invalidated == [h1]
        assert cache.is_stale(h1)
        assert not cache.is_stale(h2)
        assert not cache.is_stale(KEY)
        assert cache.get_data(h1) == "x"

    async def test_invalidate_namespace(self, cache) -> None:
        users = derive_key("admin/users", {"limit": 20, "offset": 0})
        stats = derive_key("admin/stats")
        cache.set_data(users, "u", stale_time=60)
        cache.set_data(stats, "s", stale_time=60)

        assert set(cache.invalidate("admin")) == {users, stats}

    async def test_remove_matching(self, cache) -> None:
        cache.set_data(derive_key("game-list", {"id": "l1", "auth": True}), "a")
        cache.set_data(derive_key("game-list", {"id": "l1", "auth": False}), "b")
        cache.set_data(derive_key("game-list", {"id": "l2", "auth": False}), "c")

        removed = cache.remove_matching("game-list", id="l1")

        assert len(removed) == 2
        assert len(cache) == 1


class TestApply:
    async def test_apply_patches_list(self, cache) -> None:
        cache.set_data(KEY, [{"id": "a"}, {"id": "b"}], stale_time=60)

        cache.apply(KEY, MutationIntent.delete("a"))

        assert cache.get_data(KEY) == [{"id": "b"}]
        assert not cache.is_stale(KEY)

    async def test_unpatchable_result_is_invalidated(self, cache) -> None:
        cache.set_data(KEY, {"id": "a", "name": "x"}, stale_time=60)

        result = cache.apply(KEY, MutationIntent.delete("a"))

        assert isinstance(result, RequiresRefetch)
        assert cache.is_stale(KEY)

    async def test_apply_to_missing_key_is_noop(self, cache) -> None:
        assert cache.apply(KEY, MutationIntent.delete("a")) is None
        assert KEY not in cache

    async def test_require_fresh_view(self, cache) -> None:
        result = cache.apply(KEY, MutationIntent.delete("a"), require_fresh_view=True)

        assert isinstance(result, RequiresRefetch)


class TestOptimistic:
    async def test_rollback_on_failure(self, cache) -> None:
        cache.set_data(KEY, [{"id": "a"}, {"id": "b"}], stale_time=60)
        seen_during_call = []

        async def server_call():
            seen_during_call.append(cache.get_data(KEY))
            raise ServerError("nope", status=500)

        with pytest.raises(ServerError):
            await cache.optimistic([KEY], MutationIntent.delete("a"), server_call)

        assert seen_during_call == [[{"id": "b"}]]
        assert cache.get_data(KEY) == [{"id": "a"}, {"id": "b"}]

    async def test_reconcile_follow_up(self, cache) -> None:
        cache.set_data(KEY, [{"id": "a"}], stale_time=60)

        async def server_call():
            return {"id": "server-1"}

        await cache.optimistic(
            [KEY],
            MutationIntent.create({"id": "optimistic-1"}),
            server_call,
            reconcile=lambda record: MutationIntent.reconcile("optimistic-1", record),
        )

        assert cache.get_data(KEY) == [{"id": "server-1"}, {"id": "a"}]

    async def test_optimistic_supersedes_inflight_fetch(self, cache, gate) -> None:
        cache.set_data(KEY, [{"id": "a"}, {"id": "b"}], stale_time=0)
        pending = asyncio.ensure_future(cache.fetch(KEY, gate))
        await _settle()

        async def server_call():
            return None

        await cache.optimistic([KEY], MutationIntent.delete("a"), server_call)
        gate.release([{"id": "a"}, {"id": "b"}])
        await pending

        assert cache.get_data(KEY) == [{"id": "b"}]


class TestLifecycle:
    async def test_close_cancels_inflight(self, cache, gate) -> None:
        pending = asyncio.ensure_future(cache.fetch(KEY, gate))
        await _settle()

        await cache.close()

        assert len(cache) == 0
        assert not cache.is_fetching(KEY)
        with pytest.raises(asyncio.CancelledError):
            await pending

    async def test_context_manager_clears(self, clock) -> None:
        async with QueryCache(clock=clock) as cache:
            cache.set_data(KEY, 1)

        assert KEY not in cache
