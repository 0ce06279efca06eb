"""
Database initialization and the record store.

Provides the MongoDB connection and RecordStore, which owns the typed
tracking collections (weight, mood, sleep, ...), the profile, appointments
and tasks. Everything else reads and writes records through RecordStore.
"""

import asyncio
from contextlib import contextmanager
from datetime import date, datetime, timedelta
import math
import os
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError
import pytz

from core.categories import Intent
from core.exceptions import ConfigError, StorageError
from utils.logger import get_logger


# Collection name and newest-first sort order per tracking category
LOG_COLLECTIONS = {
    Intent.WEIGHT: ("weekly_weight", [("week_number", DESCENDING), ("created_at", DESCENDING)]),
    Intent.MEDICINE: ("weekly_medicine", [("week_number", DESCENDING), ("created_at", DESCENDING)]),
    Intent.SYMPTOMS: ("weekly_symptoms", [("week_number", DESCENDING), ("created_at", DESCENDING)]),
    Intent.BLOOD_PRESSURE: ("blood_pressure_logs", [("created_at", DESCENDING)]),
    Intent.DISCHARGE: ("discharge_logs", [("created_at", DESCENDING)]),
    Intent.MOOD: ("mood_logs", [("created_at", DESCENDING)]),
    Intent.SLEEP: ("sleep_logs", [("created_at", DESCENDING)]),
}

DEFAULT_TASKS = [
    ("Initial Prenatal Visit", "First doctor visit to confirm pregnancy and health check.", 4, 4, "high"),
    ("Early Ultrasound", "Confirm pregnancy location and heartbeat.", 6, 8, "high"),
    ("Folic Acid Supplementation", "Start folic acid for neural tube development.", 4, 12, "high"),
    ("Blood Tests", "Check for blood type, hemoglobin, and infections.", 8, 10, "high"),
    ("Down Syndrome Screening", "Non-invasive prenatal screening for chromosomal conditions.", 10, 12, "medium"),
    ("NT Scan", "Nuchal translucency scan for fetal abnormalities.", 12, 14, "high"),
    ("Gestational Diabetes Test", "Glucose test to check blood sugar levels.", 14, 16, "high"),
    ("Detailed Anomaly Scan", "20-week scan to check fetal development.", 18, 20, "high"),
    ("Fetal Movement Monitoring", "Track baby movements for health assessment.", 21, 24, "medium"),
    ("Iron and Calcium Supplements", "Ensure proper bone and blood health for mother and baby.", 21, 28, "medium"),
    ("Rh Factor Screening", "Test if mother needs Rh immunoglobulin.", 26, 28, "high"),
    ("Glucose Tolerance Test", "Second test if needed for gestational diabetes.", 28, 28, "medium"),
    ("Pre-Birth Vaccination", "Tdap and flu shots for maternal and newborn protection.", 30, 32, "high"),
    ("Third-Trimester Ultrasound", "Assess baby's growth and position.", 30, 32, "high"),
    ("Birth Plan Discussion", "Discuss delivery preferences with doctor.", 33, 34, "medium"),
    ("Hospital Tour", "Visit maternity hospital to prepare for delivery.", 33, 34, "low"),
    ("Labor Signs Monitoring", "Educate about labor contractions and when to go to hospital.", 36, 40, "high"),
    ("Final Checkups", "Last medical assessments before labor.", 38, 40, "high"),
]


def init_database(mongodb_url: str = None) -> Database:
    """
    Initialize the MongoDB database.

    Args:
        mongodb_url: MongoDB connection URL (can include database name in path)
                    If not provided, uses MONGODB_URL env var or defaults to localhost

    Returns:
        pymongo.Database: Database instance
    """
    if mongodb_url is None:
        mongodb_url = os.getenv("MONGODB_URL", "mongodb://localhost:27017/pregnancy_companion")

    parsed = urlparse(mongodb_url)

    # Extract database name from path (remove leading slash)
    db_name = parsed.path.lstrip('/') if parsed.path and parsed.path != '/' else None
    if not db_name:
        db_name = "pregnancy_companion"

    if parsed.query:
        # Preserve query parameters (like authSource, etc.)
        connection_string = f"{parsed.scheme}://{parsed.netloc}/?{parsed.query}"
    else:
        connection_string = f"{parsed.scheme}://{parsed.netloc}/"

    client = MongoClient(connection_string)
    return client[db_name]


def calculate_due_date(lmp: str, cycle_length: Optional[int] = None) -> str:
    """
    Estimate the due date from the last menstrual period.

    Naegele's rule (280 days) shifted by the cycle's deviation from 28 days.

    Args:
        lmp: Last menstrual period in YYYY-MM-DD format
        cycle_length: Average cycle length in days (default 28)

    Returns:
        Due date in YYYY-MM-DD format
    """
    lmp_date = datetime.strptime(lmp, "%Y-%m-%d").date()
    adjustment = (cycle_length or 28) - 28
    return (lmp_date + timedelta(days=280 + adjustment)).isoformat()


def week_from_due_date(due_date: str, today: date) -> int:
    """Gestational week for today given the due date, clamped to 1..40."""
    due = datetime.strptime(due_date, "%Y-%m-%d").date()
    weeks_left = math.floor((due - today).days / 7)
    return max(1, min(40 - weeks_left, 40))


class RecordStore:
    """
    MongoDB-backed store for profile, tracking logs, appointments and tasks.

    Methods are coroutines; each blocking driver call runs in a worker thread
    so the event loop keeps serving other tasks while Mongo answers.
    """

    def __init__(self, db, timezone: str = "UTC", clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the store.

        Args:
            db: pymongo Database instance
            timezone: Timezone used to decide what "today" is for week math
            clock: Returns the current aware datetime (injectable for tests)
        """
        self.db = db
        try:
            self.timezone = pytz.timezone(timezone)
        except pytz.UnknownTimeZoneError as e:
            raise ConfigError(f"Unknown timezone: {timezone}") from e
        self._clock = clock or (lambda: datetime.now(pytz.utc))
        self.logger = get_logger("record_store")

        self.setup_database()

    def setup_database(self):
        """Create indexes. Idempotent."""
        with self._storage_errors("setup_database"):
            for collection_name, sort in LOG_COLLECTIONS.values():
                self.db[collection_name].create_index(sort)
            self.db["tasks"].create_index([("starting_week", ASCENDING), ("ending_week", ASCENDING)])
            self.db["appointments"].create_index("appointment_date")

    @contextmanager
    def _storage_errors(self, operation: str):
        """Translate driver and id errors into StorageError."""
        try:
            yield
        except (PyMongoError, InvalidId) as e:
            self.logger.error(f"Storage operation '{operation}' failed: {e}", exc_info=True)
            raise StorageError(f"{operation} failed: {e}") from e

    async def _run(self, operation: str, func: Callable, *args, **kwargs):
        """Run a blocking driver call in a worker thread."""
        with self._storage_errors(operation):
            return await asyncio.to_thread(func, *args, **kwargs)

    @staticmethod
    def _to_record(document: Dict) -> Dict:
        """Replace Mongo's _id with a string id."""
        record = dict(document)
        if "_id" in record:
            record["id"] = str(record.pop("_id"))
        return record

    def now(self) -> datetime:
        """Current time in the configured timezone."""
        return self._clock().astimezone(self.timezone)

    def _today(self) -> date:
        return self.now().date()

    # Profile

    async def get_profile(self) -> Optional[Dict]:
        """Return the current profile or None when none has been set."""
        document = await self._run(
            "get_profile", self.db["profile"].find_one, sort=[("_id", DESCENDING)]
        )
        return self._to_record(document) if document else None

    async def set_profile(self, fields: Dict) -> Dict:
        """
        Replace the profile.

        Args:
            fields: lmp (YYYY-MM-DD), cycle_length, period_length, age, weight, location

        Returns:
            Dict with the computed 'due_date'
        """
        due_date = calculate_due_date(fields["lmp"], fields.get("cycle_length"))
        profile = {
            "lmp": fields["lmp"],
            "cycle_length": fields.get("cycle_length"),
            "period_length": fields.get("period_length"),
            "age": fields.get("age"),
            "weight": fields.get("weight"),
            "location": fields.get("location"),
            "due_date": due_date,
        }

        def replace_profile():
            self.db["profile"].delete_many({})
            self.db["profile"].insert_one(profile)

        await self._run("set_profile", replace_profile)
        self.logger.info(f"Profile saved (due date {due_date})")
        return {"due_date": due_date}

    async def get_current_week(self) -> int:
        """Current gestational week (1..40), or 1 without a profile."""
        profile = await self.get_profile()
        if not profile or not profile.get("due_date"):
            return 1
        return week_from_due_date(profile["due_date"], self._today())

    # Tracking logs

    async def get_logs(self, category: Intent, limit: int = 10) -> List[Dict]:
        """Return up to `limit` entries of a tracking category, newest first."""
        collection_name, sort = LOG_COLLECTIONS[category]
        documents = await self._run(
            f"get_logs:{category.value}",
            lambda: list(self.db[collection_name].find().sort(sort).limit(limit)),
        )
        return [self._to_record(doc) for doc in documents]

    async def log_entry(self, category: Intent, fields: Dict) -> Dict:
        """
        Insert a tracking entry.

        Args:
            category: Tracking category
            fields: Category fields; must include week_number

        Returns:
            Dict with the new record 'id'
        """
        if "week_number" not in fields:
            raise ValueError("Tracking entries require week_number")
        collection_name, _ = LOG_COLLECTIONS[category]
        document = dict(fields)
        document.setdefault("note", "")
        document["created_at"] = self._clock()
        result = await self._run(
            f"log_entry:{category.value}", self.db[collection_name].insert_one, document
        )
        self.logger.info(f"Logged {category.value} entry for week {fields['week_number']}")
        return {"id": str(result.inserted_id)}

    async def update_entry(self, category: Intent, entry_id: str, fields: Dict):
        """Update fields of an existing tracking entry."""
        collection_name, _ = LOG_COLLECTIONS[category]
        await self._run(
            f"update_entry:{category.value}",
            lambda: self.db[collection_name].update_one({"_id": ObjectId(entry_id)}, {"$set": dict(fields)}),
        )

    async def delete_entry(self, category: Intent, entry_id: str):
        """Delete a tracking entry."""
        collection_name, _ = LOG_COLLECTIONS[category]
        await self._run(
            f"delete_entry:{category.value}",
            lambda: self.db[collection_name].delete_one({"_id": ObjectId(entry_id)}),
        )

    # Appointments

    async def get_appointments(self) -> List[Dict]:
        """Return all appointments ordered by date and time."""
        documents = await self._run(
            "get_appointments",
            lambda: list(self.db["appointments"].find().sort(
                [("appointment_date", ASCENDING), ("appointment_time", ASCENDING)]
            )),
        )
        return [self._to_record(doc) for doc in documents]

    async def create_appointment(self, fields: Dict) -> Dict:
        """
        Create an appointment.

        Args:
            fields: title, appointment_date (YYYY-MM-DD), appointment_time, appointment_location

        Returns:
            Dict with the new appointment 'id'
        """
        document = {
            "title": fields["title"],
            "appointment_date": fields["appointment_date"],
            "appointment_time": fields.get("appointment_time", ""),
            "appointment_location": fields.get("appointment_location", ""),
            "appointment_status": fields.get("appointment_status", "pending"),
            "content": fields.get("content", ""),
            "created_at": self._clock(),
        }
        result = await self._run("create_appointment", self.db["appointments"].insert_one, document)
        return {"id": str(result.inserted_id)}

    async def update_appointment(self, appointment_id: str, fields: Dict):
        await self._run(
            "update_appointment",
            lambda: self.db["appointments"].update_one({"_id": ObjectId(appointment_id)}, {"$set": dict(fields)}),
        )

    async def delete_appointment(self, appointment_id: str):
        await self._run(
            "delete_appointment",
            lambda: self.db["appointments"].delete_one({"_id": ObjectId(appointment_id)}),
        )

    # Tasks

    async def get_tasks(self, week: Optional[int] = None) -> List[Dict]:
        """Return tasks, optionally only those whose week range covers `week`."""
        query = {}
        if week is not None:
            query = {"starting_week": {"$lte": week}, "ending_week": {"$gte": week}}
        documents = await self._run(
            "get_tasks",
            lambda: list(self.db["tasks"].find(query).sort("starting_week", ASCENDING)),
        )
        return [self._to_record(doc) for doc in documents]

    async def update_task_status(self, task_id: str, status: str):
        await self._run(
            "update_task_status",
            lambda: self.db["tasks"].update_one({"_id": ObjectId(task_id)}, {"$set": {"task_status": status}}),
        )

    async def seed_default_tasks(self) -> int:
        """
        Insert the standard antenatal task list if no tasks exist.

        Returns:
            Number of tasks inserted
        """
        def seed() -> int:
            if self.db["tasks"].count_documents({}) > 0:
                return 0
            self.db["tasks"].insert_many([
                {
                    "title": title,
                    "content": content,
                    "starting_week": start,
                    "ending_week": end,
                    "task_priority": priority,
                    "task_status": "pending",
                }
                for title, content, start, end, priority in DEFAULT_TASKS
            ])
            return len(DEFAULT_TASKS)

        inserted = await self._run("seed_default_tasks", seed)
        if inserted:
            self.logger.info(f"Seeded {inserted} default tasks")
        return inserted
