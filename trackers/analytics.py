"""
Analytics Tracker - summaries computed from the cached context.
"""

from typing import Dict, List

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import average, contains_any, format_number

# Query words selecting a single metric; anything else is an overview
METRIC_WORDS = (
    (Intent.WEIGHT, ("weight",)),
    (Intent.SLEEP, ("sleep",)),
    (Intent.MOOD, ("mood",)),
    (Intent.BLOOD_PRESSURE, ("blood", "bp", "pressure")),
)


class AnalyticsTracker(BaseTracker):
    """Health analytics overview"""

    intent = Intent.ANALYTICS

    def _selected_metric(self, query: str):
        for metric, words in METRIC_WORDS:
            if contains_any(query, words):
                return metric
        return None

    def _weight_line(self, context) -> List[str]:
        entries = context.entries(Intent.WEIGHT)
        if not entries:
            return []
        avg = average(e.get("weight") for e in entries)
        return [f"⚖️ **Weight:** Current {format_number(entries[0]['weight'])} kg | Avg {avg:.1f} kg"]

    def _sleep_line(self, context) -> List[str]:
        avg = average(e.get("duration") for e in context.entries(Intent.SLEEP))
        return [f"😴 **Sleep:** Avg {avg:.1f} hours/night"] if avg is not None else []

    def _mood_line(self, context) -> List[str]:
        entries = context.entries(Intent.MOOD)
        if not entries:
            return []
        counts: Dict[str, int] = {}
        for entry in entries:
            counts[entry["mood"]] = counts.get(entry["mood"], 0) + 1
        common = max(counts, key=counts.get)
        return [f"💭 **Mood:** Most frequent '{common}' ({counts[common]} of {len(entries)} entries)"]

    def _blood_pressure_line(self, context) -> List[str]:
        entries = context.entries(Intent.BLOOD_PRESSURE)
        if not entries:
            return []
        latest = entries[0]
        return [f"💓 **Blood Pressure:** Latest {latest['systolic']}/{latest['diastolic']} mmHg"]

    async def handle(self, query: str, context) -> Dict:
        metric = self._selected_metric(query)
        sections = {
            Intent.WEIGHT: self._weight_line,
            Intent.SLEEP: self._sleep_line,
            Intent.MOOD: self._mood_line,
            Intent.BLOOD_PRESSURE: self._blood_pressure_line,
        }

        lines: List[str] = []
        for key, build in sections.items():
            if metric is None or metric == key:
                lines.extend(build(context))

        body = "\n".join(lines) if lines else "No tracking data yet."
        return self.respond(
            f"📊 **Health Analytics - Week {context.current_week}**\n\n{body}\n\n"
            "*Keep tracking for better insights! Regular monitoring helps identify trends and "
            "concerns early.*",
            action="view",
            metric=metric.value if metric else "overview",
        )
