"""
Tracker registry for intent routing.

The registry:
- Loads all enabled trackers
- Maps each intent label to exactly one handler
"""

from typing import Dict, List, Optional

from core.categories import Intent
from utils.logger import get_logger

# Intents answered without a tracker: emergency has a canned script and
# general goes to text generation.
UNHANDLED_INTENTS = frozenset({Intent.EMERGENCY, Intent.GENERAL})


def available_trackers() -> Dict[Intent, type]:
    """Map of intent to tracker class, one per routable intent."""
    from .analytics import AnalyticsTracker
    from .appointments import AppointmentsTracker
    from .blood_pressure import BloodPressureTracker
    from .discharge import DischargeTracker
    from .guidelines import GuidelinesTracker
    from .medicine import MedicineTracker
    from .mood import MoodTracker
    from .navigation import NavigationTracker
    from .sleep import SleepTracker
    from .symptoms import SymptomsTracker
    from .tasks import TasksTracker
    from .weight import WeightTracker

    classes = (
        AppointmentsTracker, WeightTracker, SymptomsTracker, BloodPressureTracker,
        MedicineTracker, DischargeTracker, MoodTracker, SleepTracker,
        GuidelinesTracker, TasksTracker, AnalyticsTracker, NavigationTracker,
    )
    return {cls.intent: cls for cls in classes}


class TrackerRegistry:
    """Central registry of intent handlers"""

    def __init__(self, record_store, context_cache, config: Optional[Dict] = None):
        """
        Initialize registry and load trackers.

        Args:
            record_store: RecordStore shared by all trackers
            context_cache: ContextCache shared by all trackers
            config: Configuration dict from config.yaml
        """
        self.record_store = record_store
        self.context_cache = context_cache
        self.config = config or {}
        self.trackers: Dict[Intent, object] = {}
        self.logger = get_logger("registry")

        self.load_trackers()

    def load_trackers(self):
        """Instantiate every tracker not disabled in the 'trackers' config section"""
        tracker_config = self.config.get("trackers", {}) or {}

        for intent, TrackerClass in available_trackers().items():
            options = tracker_config.get(intent.value, {}) or {}
            if not options.get("enabled", True):
                self.logger.debug(f"Skipping disabled tracker: {intent.value}")
                continue

            self.trackers[intent] = TrackerClass(self.record_store, self.context_cache, options)
            self.logger.debug(f"Loaded tracker: {intent.value}")

        self.logger.info(f"Loaded {len(self.trackers)} trackers")

    def get_handler(self, intent: Intent) -> Optional[object]:
        """
        Find the tracker for an intent.

        Args:
            intent: Classified intent

        Returns:
            Tracker instance or None (general, emergency, or disabled)
        """
        return self.trackers.get(intent)

    def get_all_trackers(self) -> List[object]:
        return list(self.trackers.values())
