"""
Shared fixtures: in-memory collaborators for the cache, trackers and orchestrator.
"""

from collections import Counter
from datetime import datetime, timedelta

import pytest
import pytz

from core.categories import TRACKING_CATEGORIES
from core.context_cache import ContextCache
from core.exceptions import StorageError
from core.intent_classifier import IntentClassifier
from core.orchestrator import AgentOrchestrator
from trackers.registry import TrackerRegistry

START = datetime(2026, 3, 2, 9, 0, tzinfo=pytz.utc)

PROFILE = {
    "lmp": "2025-10-20",
    "cycle_length": 28,
    "period_length": 5,
    "age": 29,
    "weight": 61.0,
    "location": "Pune",
    "due_date": "2026-07-27",
}


class Clock:
    """Controllable replacement for datetime.now(pytz.utc)."""

    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeRecordStore:
    """Async RecordStore stand-in backed by plain lists."""

    def __init__(self, clock, profile=None, current_week=20, timezone="UTC"):
        self.clock = clock
        self.timezone = pytz.timezone(timezone)
        self.profile = dict(profile) if profile else None
        self.current_week = current_week
        self.logs = {category: [] for category in TRACKING_CATEGORIES}
        self.appointments = []
        self.tasks = []
        self.fail = False
        self.calls = Counter()
        self._next_id = 0

    def _check(self, operation):
        self.calls[operation] += 1
        if self.fail:
            raise StorageError(f"{operation} failed")

    def _new_id(self):
        self._next_id += 1
        return str(self._next_id)

    def now(self):
        return self.clock().astimezone(self.timezone)

    async def get_profile(self):
        self._check("get_profile")
        return dict(self.profile) if self.profile else None

    async def get_current_week(self):
        self._check("get_current_week")
        return self.current_week

    async def get_logs(self, category, limit=10):
        self._check("get_logs")
        return [dict(record) for record in reversed(self.logs[category])][:limit]

    async def log_entry(self, category, fields):
        self._check("log_entry")
        record = dict(fields, id=self._new_id(), created_at=self.clock())
        record.setdefault("note", "")
        self.logs[category].append(record)
        return {"id": record["id"]}

    async def get_appointments(self):
        self._check("get_appointments")
        return [dict(a) for a in self.appointments]

    async def create_appointment(self, fields):
        self._check("create_appointment")
        appointment = dict(fields, id=self._new_id())
        self.appointments.append(appointment)
        return {"id": appointment["id"]}

    async def get_tasks(self, week=None):
        self._check("get_tasks")
        return [
            dict(t) for t in self.tasks
            if week is None or t["starting_week"] <= week <= t["ending_week"]
        ]

    async def update_task_status(self, task_id, status):
        self._check("update_task_status")
        for task in self.tasks:
            if task["id"] == task_id:
                task["task_status"] = status


class FakeContextStore:
    """Persistent context tier kept in a dict."""

    def __init__(self):
        self.data = {}
        self.saves = 0

    async def load(self, user_id):
        return self.data.get(user_id)

    async def save(self, user_id, data):
        self.saves += 1
        self.data[user_id] = data

    async def delete(self, user_id):
        self.data.pop(user_id, None)

    async def clear(self):
        self.data.clear()


class FakeGenerator:
    """Scripted text generation: returns `reply` or raises `error`."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate(self, conversation):
        self.calls.append(conversation)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def record_store(clock):
    return FakeRecordStore(clock, profile=PROFILE, current_week=20)


@pytest.fixture
def context_store():
    return FakeContextStore()


@pytest.fixture
def memory():
    return {}


@pytest.fixture
def cache(record_store, context_store, memory, clock):
    return ContextCache(record_store, persistent_store=context_store, memory=memory, clock=clock)


@pytest.fixture
def registry(record_store, cache):
    return TrackerRegistry(record_store, cache, {})


@pytest.fixture
def generator():
    return FakeGenerator(reply="Stay hydrated and rest when you can.")


@pytest.fixture
def orchestrator(cache, registry, generator):
    return AgentOrchestrator(cache, IntentClassifier(), registry, generator=generator)


@pytest.fixture
async def context(cache):
    return await cache.get_context("default")
