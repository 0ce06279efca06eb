"""
Two-tier cache for the aggregated user context.

The context is the denormalized snapshot every handler works from: profile
fields, the current gestational week and the most recent entries of each
tracking category. Rebuilding it touches every collection, so it is kept in
an in-memory map backed by a persistent tier and refreshed either wholesale
(when stale or missing) or one category at a time (after a write).
"""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Union

from pymongo.errors import PyMongoError
import pytz

from core.categories import PROFILE, TRACKING_CATEGORIES, Intent
from core.exceptions import StorageError
from utils.logger import get_logger


# Category-specific fields copied from a record into a context entry
ENTRY_FIELDS: Dict[Intent, tuple] = {
    Intent.WEIGHT: ("weight",),
    Intent.MEDICINE: ("name", "dose", "time", "taken"),
    Intent.SYMPTOMS: ("symptom",),
    Intent.BLOOD_PRESSURE: ("systolic", "diastolic", "time"),
    Intent.DISCHARGE: ("type", "color", "bleeding"),
    Intent.MOOD: ("mood", "intensity"),
    Intent.SLEEP: ("duration", "bedtime", "wake_time", "quality"),
}


def _iso(value) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def to_context_entry(category: Intent, record: Dict) -> Dict:
    """Project a stored tracking record onto its context entry shape."""
    entry = {"week": record.get("week_number")}
    for name in ENTRY_FIELDS[category]:
        entry[name] = record.get(name)
    if category == Intent.MEDICINE:
        entry["taken"] = bool(entry["taken"])
    entry["note"] = record.get("note", "")
    entry["date"] = _iso(record.get("created_at"))
    return entry


@dataclass(frozen=True)
class UserContext:
    """Aggregated snapshot of one user's profile and recent tracking entries."""
    user_id: str
    current_week: int
    location: Optional[str] = None
    age: Optional[int] = None
    weight: Optional[float] = None
    due_date: Optional[str] = None
    lmp: Optional[str] = None
    cycle_length: Optional[int] = None
    period_length: Optional[int] = None
    tracking_data: Dict[str, List[Dict]] = field(default_factory=dict)
    last_updated: Optional[datetime] = None

    def entries(self, category: Intent) -> List[Dict]:
        """Cached entries of a tracking category (newest first)."""
        return self.tracking_data.get(category.value, [])

    def to_dict(self) -> Dict:
        """Serialized form stored in the persistent tier."""
        return {
            "user_id": self.user_id,
            "current_week": self.current_week,
            "location": self.location,
            "age": self.age,
            "weight": self.weight,
            "due_date": self.due_date,
            "lmp": self.lmp,
            "cycle_length": self.cycle_length,
            "period_length": self.period_length,
            "tracking_data": {k: [dict(e) for e in v] for k, v in self.tracking_data.items()},
            "last_updated": _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "UserContext":
        last_updated = data.get("last_updated")
        if isinstance(last_updated, str):
            last_updated = datetime.fromisoformat(last_updated)
        return cls(
            user_id=data["user_id"],
            current_week=data["current_week"],
            location=data.get("location"),
            age=data.get("age"),
            weight=data.get("weight"),
            due_date=data.get("due_date"),
            lmp=data.get("lmp"),
            cycle_length=data.get("cycle_length"),
            period_length=data.get("period_length"),
            tracking_data={k: list(v) for k, v in (data.get("tracking_data") or {}).items()},
            last_updated=last_updated,
        )


class MongoContextStore:
    """Persistent context tier: one document per user in `context_cache`."""

    def __init__(self, db, collection_name: str = "context_cache"):
        self.collection = db[collection_name]
        self.collection.create_index("user_id", unique=True)

    async def _run(self, action: str, func: Callable, *args, **kwargs):
        """Run a blocking driver call in a worker thread."""
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except PyMongoError as e:
            raise StorageError(f"{action} failed: {e}") from e

    async def load(self, user_id: str) -> Optional[Dict]:
        document = await self._run("Loading cached context", self.collection.find_one, {"user_id": user_id})
        return document.get("cache_data") if document else None

    async def save(self, user_id: str, data: Dict):
        await self._run(
            "Saving cached context",
            self.collection.replace_one,
            {"user_id": user_id},
            {"user_id": user_id, "cache_data": data, "last_updated": data.get("last_updated")},
            upsert=True,
        )

    async def delete(self, user_id: str):
        await self._run("Deleting cached context", self.collection.delete_one, {"user_id": user_id})

    async def clear(self):
        await self._run("Clearing context cache", self.collection.delete_many, {})


class ContextCache:
    """
    Produces a UserContext per user with minimal recomputation.

    Lookup order is memory tier, then persistent tier, then a full rebuild
    from the record store. A context whose age reaches `max_age` is never
    returned without a rebuild being attempted first.

    The memory tier is private to this object; all access goes through
    get_context / update_cache / invalidate_cache.
    """

    def __init__(
        self,
        record_store,
        persistent_store=None,
        memory: Optional[Dict[str, UserContext]] = None,
        max_age: timedelta = timedelta(days=30),
        max_tracking_entries: int = 10,
        max_memory_entries: int = 50,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the cache.

        Args:
            record_store: Source of truth for profile and tracking records
            persistent_store: Tier with async load/save/delete/clear (optional)
            memory: Backing map for the memory tier (injectable for tests)
            max_age: Age at which a cached context is stale
            max_tracking_entries: Entries kept per tracking category
            max_memory_entries: Users kept in the memory tier before eviction
            clock: Returns the current aware datetime
        """
        self.record_store = record_store
        self.persistent_store = persistent_store
        self._memory = memory if memory is not None else {}
        self.max_age = max_age
        self.max_tracking_entries = max_tracking_entries
        self.max_memory_entries = max_memory_entries
        self._clock = clock or (lambda: datetime.now(pytz.utc))
        self._locks: Dict[str, asyncio.Lock] = {}
        self.logger = get_logger("context_cache")

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        # Serializes refreshes of one user's context so overlapping writes
        # cannot publish an older snapshot over a newer one.
        if user_id not in self._locks:
            self._locks[user_id] = asyncio.Lock()
        return self._locks[user_id]

    def _drop_lock(self, user_id: str):
        lock = self._locks.get(user_id)
        if lock is not None and not lock.locked():
            del self._locks[user_id]

    def is_stale(self, context: Optional[UserContext]) -> bool:
        if context is None or context.last_updated is None:
            return True
        return self._clock() - context.last_updated >= self.max_age

    async def get_context(self, user_id: str) -> Optional[UserContext]:
        """
        Return the user's context, or None when no profile exists yet.

        Raises:
            StorageError: if a required rebuild fails (tiers are left untouched)
        """
        async with self._lock_for(user_id):
            cached = self._memory.get(user_id)
            if cached is not None and not self.is_stale(cached):
                return cached

            persisted = await self._load_persisted(user_id)
            if persisted is not None and not self.is_stale(persisted):
                self.logger.debug(f"Promoting persisted context for {user_id} to memory")
                self._memory[user_id] = persisted
                self._evict()
                return persisted

            fresh = await self._build_context(user_id)
            if fresh is None:
                return None
            await self._store(user_id, fresh)
            return fresh

    async def update_cache(
        self,
        user_id: str,
        category: Optional[Union[Intent, str]] = None,
        operation: str = "update",
    ) -> Optional[UserContext]:
        """
        Refresh one section of the user's context after a write.

        Falls back to a full rebuild when no fresh context is cached; this is
        the only path besides get_context that creates a context.

        Args:
            user_id: User whose context changed
            category: Tracking category, 'profile', or None to re-store as is
            operation: 'create', 'update' or 'delete' (informational)

        Returns:
            The published context, or None when no profile exists
        """
        if category is not None and category != PROFILE:
            category = Intent(category)

        async with self._lock_for(user_id):
            current = self._memory.get(user_id)
            if current is None:
                current = await self._load_persisted(user_id)

            if current is None or self.is_stale(current):
                self.logger.info(f"No fresh context for {user_id}; rebuilding after {operation}")
                fresh = await self._build_context(user_id)
                if fresh is not None:
                    await self._store(user_id, fresh)
                return fresh

            if category == PROFILE:
                profile_fields = await self._fetch_profile_fields()
                if profile_fields is None:
                    return current
                updated = replace(current, **profile_fields, last_updated=self._clock())
            elif category in TRACKING_CATEGORIES:
                tracking = dict(current.tracking_data)
                tracking[category.value] = await self._fetch_category(category)
                updated = replace(current, tracking_data=tracking, last_updated=self._clock())
            else:
                # Appointments, tasks and the like are not part of the context
                if category is not None:
                    self.logger.debug(f"'{category.value}' is not cached; nothing to refresh")
                updated = current

            self.logger.debug(
                f"Refreshed {getattr(category, 'value', category)} for {user_id} ({operation})"
            )
            await self._store(user_id, updated)
            return updated

    async def invalidate_cache(self, user_id: Optional[str] = None):
        """Drop one user's context from both tiers, or everything when user_id is None."""
        if user_id is not None:
            self._memory.pop(user_id, None)
            self._drop_lock(user_id)
            if self.persistent_store is not None:
                await self.persistent_store.delete(user_id)
            self.logger.info(f"Invalidated context for {user_id}")
        else:
            self._memory.clear()
            for cached_user in list(self._locks):
                self._drop_lock(cached_user)
            if self.persistent_store is not None:
                await self.persistent_store.clear()
            self.logger.info("Invalidated all cached contexts")

    def get_cache_stats(self) -> Dict:
        return {
            "memory_cache_size": len(self._memory),
            "max_memory_cache_size": self.max_memory_entries,
            "max_tracking_entries": self.max_tracking_entries,
            "max_cache_age_days": self.max_age.total_seconds() / 86400,
        }

    # Internals

    async def _load_persisted(self, user_id: str) -> Optional[UserContext]:
        if self.persistent_store is None:
            return None
        data = await self.persistent_store.load(user_id)
        if not data:
            return None
        try:
            return UserContext.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            self.logger.warning(f"Discarding unreadable cached context for {user_id}: {e}")
            return None

    async def _store(self, user_id: str, context: UserContext):
        """Write through: persistent tier first, then memory."""
        if self.persistent_store is not None:
            await self.persistent_store.save(user_id, context.to_dict())
        self._memory[user_id] = context
        self._evict()

    def _evict(self):
        """Drop least-recently-updated contexts until the memory tier fits."""
        overflow = len(self._memory) - self.max_memory_entries
        if overflow <= 0:
            return
        epoch = datetime.min.replace(tzinfo=pytz.utc)
        oldest = sorted(
            self._memory.items(),
            key=lambda item: item[1].last_updated or epoch,
        )[:overflow]
        for user_id, _ in oldest:
            del self._memory[user_id]
            self._drop_lock(user_id)
            self.logger.debug(f"Evicted context for {user_id} from memory")

    async def _fetch_profile_fields(self) -> Optional[Dict]:
        profile = await self.record_store.get_profile()
        if not profile:
            return None
        current_week = await self.record_store.get_current_week()
        return {
            "current_week": current_week,
            "location": profile.get("location"),
            "age": profile.get("age"),
            "weight": profile.get("weight"),
            "due_date": profile.get("due_date"),
            "lmp": profile.get("lmp"),
            "cycle_length": profile.get("cycle_length"),
            "period_length": profile.get("period_length"),
        }

    async def _fetch_category(self, category: Intent) -> List[Dict]:
        records = await self.record_store.get_logs(category, self.max_tracking_entries)
        return [to_context_entry(category, record) for record in records]

    async def _build_context(self, user_id: str) -> Optional[UserContext]:
        """Assemble a fresh context from the record store; None without a profile."""
        profile_fields = await self._fetch_profile_fields()
        if profile_fields is None:
            self.logger.info(f"No profile yet for {user_id}; context unavailable")
            return None

        slices = await asyncio.gather(
            *(self._fetch_category(category) for category in TRACKING_CATEGORIES)
        )
        tracking = {
            category.value: entries
            for category, entries in zip(TRACKING_CATEGORIES, slices)
        }
        self.logger.info(f"Built context for {user_id} at week {profile_fields['current_week']}")
        return UserContext(
            user_id=user_id,
            tracking_data=tracking,
            last_updated=self._clock(),
            **profile_fields,
        )
