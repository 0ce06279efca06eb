"""
Tests for the MongoDB record store and persistent context tier.

pymongo collections are MagicMocks; nothing here needs a running server.
"""

import asyncio
from collections import defaultdict
from datetime import date, datetime
import threading
from unittest.mock import MagicMock

from bson import ObjectId
from pymongo.errors import PyMongoError
import pytest
import pytz

from core.categories import Intent
from core.context_cache import MongoContextStore
from core.database import DEFAULT_TASKS, RecordStore, calculate_due_date, week_from_due_date
from core.exceptions import ConfigError, StorageError


@pytest.fixture
def collections():
    return defaultdict(MagicMock)


@pytest.fixture
def db(collections):
    database = MagicMock()
    database.__getitem__.side_effect = lambda name: collections.setdefault(name, MagicMock())
    return database


@pytest.fixture
def store(db):
    return RecordStore(db, clock=lambda: datetime(2026, 5, 28, 12, 0, tzinfo=pytz.utc))


class TestDueDateMath:
    def test_due_date_is_280_days_after_lmp(self):
        assert calculate_due_date("2026-01-01") == "2026-10-08"

    def test_due_date_shifts_with_cycle_length(self):
        assert calculate_due_date("2026-01-01", 30) == "2026-10-10"
        assert calculate_due_date("2026-01-01", 26) == "2026-10-06"

    def test_week_counts_down_to_due_date(self):
        assert week_from_due_date("2026-10-08", date(2026, 5, 28)) == 21
        assert week_from_due_date("2026-10-08", date(2026, 10, 8)) == 40

    def test_week_is_clamped(self):
        assert week_from_due_date("2026-10-08", date(2025, 1, 1)) == 1
        assert week_from_due_date("2026-10-08", date(2026, 12, 1)) == 40


class TestProfile:
    async def test_current_week_without_profile(self, store, collections):
        collections["profile"].find_one.return_value = None

        assert await store.get_profile() is None
        assert await store.get_current_week() == 1

    async def test_current_week_from_due_date(self, store, collections):
        collections["profile"].find_one.return_value = {"_id": ObjectId(), "due_date": "2026-10-08"}

        assert await store.get_current_week() == 21

    async def test_set_profile_replaces_and_returns_due_date(self, store, collections):
        result = await store.set_profile({"lmp": "2026-01-01", "cycle_length": 28, "age": 30})

        assert result == {"due_date": "2026-10-08"}
        collections["profile"].delete_many.assert_called_once_with({})
        saved = collections["profile"].insert_one.call_args[0][0]
        assert saved["due_date"] == "2026-10-08"
        assert saved["age"] == 30

    async def test_profile_id_is_a_string(self, store, collections):
        oid = ObjectId()
        collections["profile"].find_one.return_value = {"_id": oid, "lmp": "2026-01-01"}

        profile = await store.get_profile()

        assert profile["id"] == str(oid)
        assert "_id" not in profile


class TestTrackingLogs:
    async def test_log_entry_stamps_created_at(self, store, collections):
        oid = ObjectId()
        collections["weekly_weight"].insert_one.return_value.inserted_id = oid

        result = await store.log_entry(Intent.WEIGHT, {"weight": 65.0, "week_number": 20})

        assert result == {"id": str(oid)}
        document = collections["weekly_weight"].insert_one.call_args[0][0]
        assert document["created_at"] == datetime(2026, 5, 28, 12, 0, tzinfo=pytz.utc)
        assert document["note"] == ""

    async def test_log_entry_requires_week(self, store):
        with pytest.raises(ValueError):
            await store.log_entry(Intent.MOOD, {"mood": "calm"})

    async def test_get_logs_sorts_newest_first_and_limits(self, store, collections):
        cursor = collections["blood_pressure_logs"].find.return_value
        cursor.sort.return_value.limit.return_value = [
            {"_id": ObjectId(), "systolic": 120, "diastolic": 80, "week_number": 20},
        ]

        records = await store.get_logs(Intent.BLOOD_PRESSURE, 5)

        cursor.sort.return_value.limit.assert_called_once_with(5)
        assert records[0]["systolic"] == 120
        assert "id" in records[0]

    async def test_driver_errors_become_storage_errors(self, store, collections):
        collections["weekly_symptoms"].find.side_effect = PyMongoError("connection refused")

        with pytest.raises(StorageError):
            await store.get_logs(Intent.SYMPTOMS)

    async def test_bad_id_becomes_storage_error(self, store):
        with pytest.raises(StorageError):
            await store.delete_entry(Intent.SLEEP, "not-an-object-id")

    async def test_update_entry_sets_fields(self, store, collections):
        oid = ObjectId()

        await store.update_entry(Intent.MOOD, str(oid), {"mood": "happy"})

        collections["mood_logs"].update_one.assert_called_once_with({"_id": oid}, {"$set": {"mood": "happy"}})


class TestAppointmentsAndTasks:
    async def test_create_appointment_defaults_to_pending(self, store, collections):
        collections["appointments"].insert_one.return_value.inserted_id = ObjectId()

        await store.create_appointment({"title": "Checkup", "appointment_date": "2026-06-01"})

        document = collections["appointments"].insert_one.call_args[0][0]
        assert document["appointment_status"] == "pending"

    async def test_tasks_filtered_by_week(self, store, collections):
        collections["tasks"].find.return_value.sort.return_value = []

        await store.get_tasks(20)

        collections["tasks"].find.assert_called_once_with(
            {"starting_week": {"$lte": 20}, "ending_week": {"$gte": 20}}
        )

    async def test_seed_only_into_empty_collection(self, store, collections):
        collections["tasks"].count_documents.return_value = 0
        assert await store.seed_default_tasks() == len(DEFAULT_TASKS)
        assert len(collections["tasks"].insert_many.call_args[0][0]) == len(DEFAULT_TASKS)

        collections["tasks"].count_documents.return_value = 18
        assert await store.seed_default_tasks() == 0


class TestEventLoop:
    async def test_driver_calls_run_off_the_event_loop(self, store, collections):
        loop_thread = threading.get_ident()
        threads = []
        collections["profile"].find_one.side_effect = lambda **kwargs: threads.append(threading.get_ident())

        await store.get_profile()

        assert threads and threads[0] != loop_thread

    async def test_concurrent_reads_overlap(self, store, collections):
        # Both reads must be inside the driver at once for the barrier to open
        barrier = threading.Barrier(2, timeout=2)

        def wait_for_other_read(**kwargs):
            barrier.wait()
            return None

        collections["profile"].find_one.side_effect = wait_for_other_read

        assert await asyncio.gather(store.get_profile(), store.get_profile()) == [None, None]

    def test_now_uses_configured_timezone(self, db):
        store = RecordStore(db, timezone="Asia/Kolkata",
                            clock=lambda: datetime(2026, 5, 28, 20, 0, tzinfo=pytz.utc))

        assert store.now().date() == date(2026, 5, 29)
        assert store.now().utcoffset().total_seconds() == 5.5 * 3600

    def test_unknown_timezone_is_a_config_error(self, db):
        with pytest.raises(ConfigError):
            RecordStore(db, timezone="Mars/Olympus_Mons")


class TestMongoContextStore:
    async def test_save_upserts_one_document_per_user(self, db, collections):
        context_store = MongoContextStore(db)

        await context_store.save("default", {"user_id": "default", "last_updated": "2026-05-28T12:00:00+00:00"})

        args, kwargs = collections["context_cache"].replace_one.call_args
        assert args[0] == {"user_id": "default"}
        assert args[1]["cache_data"]["user_id"] == "default"
        assert kwargs["upsert"] is True

    async def test_load_returns_cache_data(self, db, collections):
        collections["context_cache"].find_one.return_value = {"user_id": "u", "cache_data": {"user_id": "u"}}

        assert await MongoContextStore(db).load("u") == {"user_id": "u"}

    async def test_errors_become_storage_errors(self, db, collections):
        context_store = MongoContextStore(db)
        collections["context_cache"].delete_many.side_effect = PyMongoError("down")

        with pytest.raises(StorageError):
            await context_store.clear()
