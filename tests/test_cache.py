"""
Unit tests for the cache package: TTL slots, stores, coalescing and the manager.
"""
import threading
from datetime import timedelta

import pytest

from activity_feed.cache import (
    GLOBAL_KEY,
    TTL_CONFIG,
    CacheEntry,
    CacheManager,
    CacheStore,
    FillSource,
    RequestCoalescer,
    ResourceClass,
    get_ttl_for_resource,
)


class TestCacheEntry:
    """Slot validity rules."""

    def test_empty_slot_is_invalid(self, clock):
        entry = CacheEntry(ttl=timedelta(seconds=30))
        assert not entry.is_valid(clock())
        assert entry.age(clock()) is None

    def test_data_without_timestamp_is_invalid(self, clock):
        entry = CacheEntry(ttl=timedelta(seconds=30), data=[1])
        assert not entry.is_valid(clock())

    def test_valid_until_ttl_elapses(self, clock):
        entry = CacheEntry(ttl=timedelta(seconds=30), data=[], fetched_at=clock())
        assert entry.is_valid(clock())

        clock.advance(29_999)
        assert entry.is_valid(clock())

        clock.advance(1)
        assert not entry.is_valid(clock())


class TestCacheStore:

    def test_slot_is_created_once(self, clock):
        store = CacheStore(timedelta(seconds=30), clock=clock)
        first = store.slot(3)
        assert store.slot(3) is first
        assert len(store) == 1

    def test_get_on_unknown_key(self, clock):
        store = CacheStore(timedelta(seconds=30), clock=clock)
        assert store.get(42) is None
        assert not store.is_valid(42)

    def test_put_then_get(self, clock):
        store = CacheStore(timedelta(seconds=30), clock=clock)
        store.put(1, ["a"])
        assert store.get(1) == ["a"]
        assert store.is_valid(1)

    def test_put_replaces_data_and_timestamp(self, clock):
        store = CacheStore(timedelta(seconds=30), clock=clock)
        store.put(1, ["a", "b"])
        clock.advance(20_000)
        store.put(1, ["c"])

        entry = store.slot(1)
        assert entry.data == ["c"]
        assert entry.fetched_at == clock()

        clock.advance(20_000)
        assert store.get(1) == ["c"]

    def test_keys_expire_independently(self, clock):
        store = CacheStore(timedelta(seconds=30), clock=clock)
        store.put(1, ["old"])
        clock.advance(20_000)
        store.put(2, ["new"])
        clock.advance(15_000)

        assert store.get(1) is None
        assert store.get(2) == ["new"]

    def test_empty_sequence_is_cacheable(self, clock):
        store = CacheStore(timedelta(seconds=30), clock=clock)
        store.put(1, [])
        assert store.get(1) == []
        assert store.is_valid(1)


class TestTTLPolicies:

    def test_fixed_ttls(self):
        assert TTL_CONFIG[ResourceClass.USERS] == 60_000
        assert get_ttl_for_resource(ResourceClass.USERS) == timedelta(seconds=60)
        assert get_ttl_for_resource(ResourceClass.USER_POSTS) == timedelta(seconds=30)
        assert get_ttl_for_resource(ResourceClass.POST_COMMENTS) == timedelta(seconds=30)


class TestRequestCoalescer:

    @pytest.fixture
    def store(self, clock):
        return CacheStore(timedelta(seconds=30), clock=clock)

    def test_fill_fetches_and_writes_slot(self, store):
        coalescer = RequestCoalescer()

        data, source = coalescer.fill(ResourceClass.USER_POSTS, 1, store, lambda: ["p"])

        assert data == ["p"]
        assert source is FillSource.UPSTREAM
        assert store.get(1) is data
        assert coalescer.get_stats() == {"in_flight": 0, "coalesced": 0}

    def test_refilled_slot_skips_fetch(self, store):
        coalescer = RequestCoalescer()
        store.put(1, ["already"])
        calls = []

        data, source = coalescer.fill(
            ResourceClass.USER_POSTS, 1, store, lambda: calls.append(1) or ["new"]
        )

        assert data == ["already"]
        assert source is FillSource.CACHED
        assert calls == []

    def test_same_key_in_other_resource_is_separate(self, clock):
        coalescer = RequestCoalescer()
        posts = CacheStore(timedelta(seconds=30), clock=clock)
        comments = CacheStore(timedelta(seconds=30), clock=clock)

        coalescer.fill(ResourceClass.USER_POSTS, 1, posts, lambda: ["post"])
        data, source = coalescer.fill(ResourceClass.POST_COMMENTS, 1, comments, lambda: ["comment"])

        assert data == ["comment"]
        assert source is FillSource.UPSTREAM

    def test_concurrent_fills_share_one_fetch(self, store, wait_until):
        coalescer = RequestCoalescer()
        gate = threading.Event()
        calls = []

        def fetch():
            calls.append(1)
            gate.wait(timeout=5)
            return ["shared"]

        results = []

        def call():
            results.append(coalescer.fill(ResourceClass.USER_POSTS, 1, store, fetch))

        first = threading.Thread(target=call)
        first.start()
        wait_until(lambda: len(calls) == 1)
        second = threading.Thread(target=call)
        second.start()
        wait_until(lambda: coalescer.get_stats()["coalesced"] == 1)

        gate.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert len(calls) == 1
        assert sorted(source.value for _, source in results) == ["joined", "upstream"]
        assert results[0][0] is results[1][0]
        assert coalescer.get_stats()["in_flight"] == 0

    def test_error_reaches_every_waiter(self, store, wait_until):
        coalescer = RequestCoalescer()
        gate = threading.Event()

        def fetch():
            gate.wait(timeout=5)
            raise RuntimeError("boom")

        errors = []

        def call():
            try:
                coalescer.fill(ResourceClass.POST_COMMENTS, 5, store, fetch)
            except RuntimeError as e:
                errors.append(e)

        first = threading.Thread(target=call)
        first.start()
        wait_until(lambda: coalescer.get_stats()["in_flight"] == 1)
        second = threading.Thread(target=call)
        second.start()
        wait_until(lambda: coalescer.get_stats()["coalesced"] == 1)

        gate.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert len(errors) == 2
        assert errors[0] is errors[1]
        assert store.slot(5).data is None
        assert coalescer.get_stats()["in_flight"] == 0


class TestCacheManager:

    def test_miss_then_hit(self, clock):
        manager = CacheManager(clock=clock)
        calls = []

        def fetch():
            calls.append(1)
            return ["u"]

        first = manager.fetch(ResourceClass.USERS, GLOBAL_KEY, fetch)
        second = manager.fetch(ResourceClass.USERS, GLOBAL_KEY, fetch)

        assert first is second
        assert len(calls) == 1
        stats = manager.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate_percent"] == 50.0
        assert stats["entries"]["users"] == 1

    def test_failure_leaves_slot_untouched(self, clock):
        manager = CacheManager(clock=clock)
        manager.fetch(ResourceClass.USER_POSTS, 1, lambda: ["old"])
        clock.advance(30_001)

        def fail():
            raise RuntimeError("down")

        with pytest.raises(RuntimeError):
            manager.fetch(ResourceClass.USER_POSTS, 1, fail)

        entry = manager.store(ResourceClass.USER_POSTS).slot(1)
        assert entry.data == ["old"]

    def test_resources_use_separate_stores(self, clock):
        manager = CacheManager(clock=clock)
        manager.fetch(ResourceClass.USER_POSTS, 1, lambda: ["posts"])
        comments = manager.fetch(ResourceClass.POST_COMMENTS, 1, lambda: ["comments"])
        assert comments == ["comments"]
