"""
Base class for all intent handlers.

All trackers must inherit from BaseTracker and declare the intent they serve.
"""

from abc import ABC
from typing import Dict, List, Optional

from core.categories import Intent
from utils.helpers import contains_any, make_response
from utils.logger import get_logger


class BaseTracker(ABC):
    """
    Abstract base class for intent handlers.

    A handler answers one intent in a single pass:
    - read request (show/list/history) -> summarize cached entries
    - parseable write -> persist a record, then refresh that cache section
    - anything else -> clarifying prompt naming the required fields

    Trackers keep no state between calls; a follow-up is a new, fuller query.
    """

    intent: Intent = None
    read_keywords = ("show", "list", "history", "trend", "previous")
    required_fields: List[str] = []

    def __init__(self, record_store, context_cache, config: Optional[Dict] = None):
        """
        Initialize tracker.

        Args:
            record_store: RecordStore (or compatible) for reads and writes
            context_cache: ContextCache refreshed after each write
            config: Tracker-specific configuration from config.yaml
        """
        self.record_store = record_store
        self.context_cache = context_cache
        self.config = config or {}
        self.logger = get_logger(f"tracker.{self.get_name()}")

    def get_name(self) -> str:
        """
        Return unique tracker identifier.

        Returns:
            Intent label (e.g., 'weight', 'blood_pressure')
        """
        return self.intent.value

    def is_read_request(self, query: str) -> bool:
        return contains_any(query, self.read_keywords)

    def now(self):
        """Current time in the record store's timezone."""
        return self.record_store.now()

    async def handle(self, query: str, context) -> Dict:
        """
        Process a query routed to this tracker.

        Args:
            query: Raw user text
            context: UserContext for the requesting user

        Returns:
            Response dict (see utils.helpers.make_response)
        """
        if self.is_read_request(query):
            return await self.handle_read(query, context)

        fields = self.extract(query)
        if fields:
            return await self.handle_write(fields, query, context)

        return self.clarify(context)

    def extract(self, query: str) -> Optional[Dict]:
        """Parse record fields out of the query, or None when nothing usable is present."""
        return None

    async def handle_read(self, query: str, context) -> Dict:
        return self.clarify(context)

    async def handle_write(self, fields: Dict, query: str, context) -> Dict:
        raise NotImplementedError(f"{self.get_name()} does not record entries")

    def clarify(self, context) -> Dict:
        raise NotImplementedError

    # Helper methods (don't need to override)

    def respond(self, message: str, action: Optional[str] = None, **extra) -> Dict:
        return make_response(message, intent=self.get_name(), action=action, **extra)

    def follow_up(self, message: str, required_fields: Optional[List[str]] = None) -> Dict:
        return self.respond(
            message,
            action=None,
            requires_follow_up=True,
            required_fields=list(required_fields or self.required_fields),
        )

    def recent_entries(self, context, limit: int = 5) -> List[Dict]:
        return context.entries(self.intent)[:limit]

    async def save_entry(self, context, fields: Dict) -> Dict:
        """
        Persist a tracking record for the current week and refresh the cache.

        The cache update is awaited so the next read sees the new entry.
        """
        record = dict(fields, week_number=context.current_week)
        result = await self.record_store.log_entry(self.intent, record)
        await self.context_cache.update_cache(context.user_id, self.intent, "create")
        self.logger.info(f"Logged {self.get_name()} entry {result.get('id')} for week {context.current_week}")
        return result
