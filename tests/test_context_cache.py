"""
Tests for the two-tier context cache.
"""

import asyncio
from datetime import timedelta

import pytest

from core.categories import PROFILE, TRACKING_CATEGORIES, Intent
from core.context_cache import ENTRY_FIELDS, ContextCache, UserContext
from core.exceptions import StorageError
from tests.conftest import PROFILE as PROFILE_FIELDS
from tests.conftest import FakeRecordStore


class YieldingRecordStore(FakeRecordStore):
    """Gives up the event loop before every log read, like a real driver call."""

    async def get_logs(self, category, limit=10):
        await asyncio.sleep(0)
        return await super().get_logs(category, limit)


class TestGetContext:
    """Lookup order and rebuilds"""

    async def test_builds_context_from_record_store(self, cache, record_store):
        context = await cache.get_context("default")

        assert context.user_id == "default"
        assert context.current_week == 20
        assert context.location == "Pune"
        assert context.due_date == "2026-07-27"
        assert set(context.tracking_data) == {c.value for c in TRACKING_CATEGORIES}
        assert record_store.calls["get_profile"] == 1

    async def test_second_call_returns_same_context_without_rebuild(self, cache, record_store):
        first = await cache.get_context("default")
        second = await cache.get_context("default")

        assert second is first
        assert record_store.calls["get_profile"] == 1
        assert record_store.calls["get_logs"] == len(TRACKING_CATEGORIES)

    async def test_stale_context_is_rebuilt(self, cache, record_store, clock):
        first = await cache.get_context("default")
        clock.advance(days=30)

        second = await cache.get_context("default")

        assert second is not first
        assert second.last_updated == clock.now
        assert record_store.calls["get_profile"] == 2

    async def test_context_younger_than_max_age_is_served(self, cache, record_store, clock):
        await cache.get_context("default")
        clock.advance(days=29, hours=23)

        await cache.get_context("default")

        assert record_store.calls["get_profile"] == 1

    async def test_no_profile_means_no_context(self, cache, record_store, memory, context_store):
        record_store.profile = None

        assert await cache.get_context("default") is None
        assert memory == {}
        assert context_store.data == {}

    async def test_build_writes_both_tiers(self, cache, memory, context_store):
        context = await cache.get_context("default")

        assert memory["default"] is context
        assert context_store.data["default"] == context.to_dict()

    async def test_persisted_context_is_promoted(self, cache, record_store, context_store, memory, clock):
        persisted = UserContext(user_id="default", current_week=18, location="Delhi",
                                tracking_data={}, last_updated=clock.now)
        context_store.data["default"] = persisted.to_dict()

        context = await cache.get_context("default")

        assert context.current_week == 18
        assert context.location == "Delhi"
        assert memory["default"] == context
        assert record_store.calls["get_profile"] == 0

    async def test_stale_persisted_context_is_rebuilt(self, cache, record_store, context_store, clock):
        old = UserContext(user_id="default", current_week=18, tracking_data={},
                          last_updated=clock.now - timedelta(days=45))
        context_store.data["default"] = old.to_dict()

        context = await cache.get_context("default")

        assert context.current_week == 20
        assert record_store.calls["get_profile"] == 1

    async def test_unreadable_persisted_context_is_a_miss(self, cache, record_store, context_store):
        context_store.data["default"] = {"unexpected": True}

        context = await cache.get_context("default")

        assert context.current_week == 20
        assert record_store.calls["get_profile"] == 1

    async def test_failed_rebuild_keeps_previous_value(self, cache, record_store, memory, context_store, clock):
        previous = await cache.get_context("default")
        clock.advance(days=31)
        record_store.fail = True

        with pytest.raises(StorageError):
            await cache.get_context("default")

        assert memory["default"] is previous
        assert context_store.data["default"] == previous.to_dict()

    async def test_failed_first_build_caches_nothing(self, cache, record_store, memory, context_store):
        record_store.fail = True

        with pytest.raises(StorageError):
            await cache.get_context("default")

        assert memory == {}
        assert context_store.data == {}


class TestUpdateCache:
    """Per-category refresh after writes"""

    async def test_weight_write_refreshes_only_weight(self, cache, record_store, clock):
        await record_store.log_entry(Intent.MOOD, {"mood": "calm", "intensity": "", "week_number": 19})
        before = await cache.get_context("default")
        clock.advance(minutes=5)

        await record_store.log_entry(Intent.WEIGHT, {"weight": 65.0, "week_number": 20})
        after = await cache.update_cache("default", Intent.WEIGHT, "create")

        assert after.entries(Intent.WEIGHT)[0]["weight"] == 65.0
        assert after.entries(Intent.WEIGHT)[0]["week"] == 20
        for category in TRACKING_CATEGORIES:
            if category != Intent.WEIGHT:
                assert after.entries(category) == before.entries(category)
        assert after.last_updated > before.last_updated
        assert record_store.calls["get_profile"] == 1

    async def test_refreshed_context_is_what_get_context_returns(self, cache, record_store):
        await cache.get_context("default")
        await record_store.log_entry(Intent.WEIGHT, {"weight": 65.0, "week_number": 20})

        updated = await cache.update_cache("default", "weight", "create")

        assert await cache.get_context("default") is updated
        assert record_store.calls["get_profile"] == 1

    async def test_update_without_cached_context_rebuilds(self, cache, record_store, memory):
        context = await cache.update_cache("default", Intent.SLEEP, "create")

        assert context is not None
        assert memory["default"] is context
        assert record_store.calls["get_profile"] == 1

    async def test_update_on_stale_context_rebuilds(self, cache, record_store, clock):
        await cache.get_context("default")
        clock.advance(days=31)

        await cache.update_cache("default", Intent.SLEEP, "create")

        assert record_store.calls["get_profile"] == 2

    async def test_profile_refresh_keeps_tracking_data(self, cache, record_store, clock):
        await record_store.log_entry(Intent.SLEEP, {"duration": 7.0, "week_number": 20})
        before = await cache.get_context("default")
        record_store.profile["location"] = "Mumbai"
        record_store.current_week = 21
        clock.advance(minutes=1)

        after = await cache.update_cache("default", PROFILE, "update")

        assert after.location == "Mumbai"
        assert after.current_week == 21
        assert after.tracking_data == before.tracking_data

    async def test_uncached_intent_leaves_context_unchanged(self, cache):
        before = await cache.get_context("default")

        after = await cache.update_cache("default", Intent.TASKS, "update")

        assert after is before

    async def test_context_values_are_replaced_not_mutated(self, cache, record_store):
        before = await cache.get_context("default")
        await record_store.log_entry(Intent.WEIGHT, {"weight": 65.0, "week_number": 20})

        await cache.update_cache("default", Intent.WEIGHT, "create")

        assert before.entries(Intent.WEIGHT) == []

    async def test_failed_refresh_keeps_previous_value(self, cache, record_store, memory):
        previous = await cache.get_context("default")
        record_store.fail = True

        with pytest.raises(StorageError):
            await cache.update_cache("default", Intent.WEIGHT, "create")

        assert memory["default"] is previous

    async def test_tracking_slice_is_bounded(self, record_store, context_store, clock):
        cache = ContextCache(record_store, context_store, max_tracking_entries=3, clock=clock)
        for kg in (60, 61, 62, 63, 64):
            await record_store.log_entry(Intent.WEIGHT, {"weight": kg, "week_number": 20})

        context = await cache.get_context("default")

        assert [e["weight"] for e in context.entries(Intent.WEIGHT)] == [64, 63, 62]


class TestEvictionAndInvalidation:
    """Memory tier bounds and explicit removal"""

    async def test_least_recently_updated_are_evicted(self, record_store, context_store, clock):
        memory = {}
        cache = ContextCache(record_store, context_store, memory=memory,
                             max_memory_entries=3, clock=clock)

        for n in range(5):
            clock.advance(minutes=1)
            await cache.get_context(f"user{n}")

        assert set(memory) == {"user2", "user3", "user4"}
        assert len(context_store.data) == 5

    async def test_refresh_protects_entry_from_eviction(self, record_store, context_store, clock):
        memory = {}
        cache = ContextCache(record_store, context_store, memory=memory,
                             max_memory_entries=2, clock=clock)
        await cache.get_context("user0")
        clock.advance(minutes=1)
        await cache.get_context("user1")
        clock.advance(minutes=1)
        await cache.update_cache("user0", Intent.WEIGHT, "create")
        clock.advance(minutes=1)

        await cache.get_context("user2")

        assert set(memory) == {"user0", "user2"}

    async def test_invalidate_one_user(self, cache, memory, context_store):
        await cache.get_context("alice")
        await cache.get_context("bob")

        await cache.invalidate_cache("alice")

        assert set(memory) == {"bob"}
        assert set(context_store.data) == {"bob"}

    async def test_invalidate_everything(self, cache, memory, context_store):
        await cache.get_context("alice")
        await cache.get_context("bob")

        await cache.invalidate_cache()

        assert memory == {}
        assert context_store.data == {}

    async def test_invalidated_context_is_rebuilt(self, cache, record_store):
        await cache.get_context("default")
        await cache.invalidate_cache("default")

        await cache.get_context("default")

        assert record_store.calls["get_profile"] == 2


class TestConcurrentUpdates:
    """Overlapping refreshes of one user's context"""

    async def test_overlapping_updates_keep_both_categories(self, context_store, memory, clock):
        record_store = YieldingRecordStore(clock, profile=PROFILE_FIELDS, current_week=20)
        cache = ContextCache(record_store, context_store, memory=memory, clock=clock)
        await cache.get_context("default")
        await record_store.log_entry(Intent.WEIGHT, {"weight": 65.0, "week_number": 20})
        await record_store.log_entry(Intent.SLEEP, {"duration": 7.5, "week_number": 20})

        await asyncio.gather(
            cache.update_cache("default", Intent.WEIGHT, "create"),
            cache.update_cache("default", Intent.SLEEP, "create"),
        )

        final = await cache.get_context("default")
        assert final.entries(Intent.WEIGHT)[0]["weight"] == 65.0
        assert final.entries(Intent.SLEEP)[0]["duration"] == 7.5
        assert context_store.data["default"] == final.to_dict()

    async def test_invalidate_releases_user_lock(self, cache):
        await cache.get_context("alice")
        await cache.get_context("bob")

        await cache.invalidate_cache("alice")
        assert set(cache._locks) == {"bob"}

        await cache.invalidate_cache()
        assert cache._locks == {}

    async def test_eviction_releases_user_lock(self, record_store, context_store, clock):
        cache = ContextCache(record_store, context_store, max_memory_entries=1, clock=clock)
        await cache.get_context("user0")
        clock.advance(minutes=1)

        await cache.get_context("user1")

        assert set(cache._locks) == {"user1"}


class TestCacheInternals:
    def test_staleness_boundary(self, cache, clock):
        context = UserContext(user_id="u", current_week=1, last_updated=clock.now)

        assert not cache.is_stale(context)
        clock.advance(days=30)
        assert cache.is_stale(context)
        assert cache.is_stale(None)

    def test_stats(self, cache):
        stats = cache.get_cache_stats()

        assert stats["memory_cache_size"] == 0
        assert stats["max_memory_cache_size"] == 50
        assert stats["max_cache_age_days"] == 30

    def test_every_tracking_category_has_entry_fields(self):
        assert set(ENTRY_FIELDS) == set(TRACKING_CATEGORIES)
