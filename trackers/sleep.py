"""
Sleep Tracker - sleep duration logging and averages.

Features:
- Sleep duration logging ("I slept 7 hours", "6.5 hrs of sleep")
- Sleep quality words (good, poor, restless, ...)
- History with average duration
"""

import re
from typing import Dict, Optional

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import average, find_first, format_number

HOURS = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)\b", re.IGNORECASE)
QUALITIES = ("excellent", "great", "good", "okay", "restless", "poor", "bad")


def duration_advice(hours: float) -> str:
    if hours < 6:
        return "😴 Try to get more rest - aim for 7-9 hours. Consider naps during the day."
    if 7 <= hours <= 9:
        return "✨ Great sleep duration! Keep maintaining this healthy pattern."
    return "💤 Good rest! Quality sleep is essential during pregnancy."


class SleepTracker(BaseTracker):
    """Sleep tracking and analysis"""

    intent = Intent.SLEEP
    required_fields = ["duration"]

    def extract(self, query: str) -> Optional[Dict]:
        match = HOURS.search(query)
        if not match:
            return None
        hours = float(match.group(1))
        if not 0 < hours <= 24:
            return None
        return {"duration": hours, "quality": find_first(query, QUALITIES) or ""}

    async def handle_read(self, query: str, context) -> Dict:
        entries = self.recent_entries(context)
        if not entries:
            return self.respond(
                "You haven't logged any sleep entries yet. How many hours did you sleep last night?",
                action="list",
            )

        avg = average(e.get("duration") for e in context.entries(self.intent))
        lines = [
            f"• Week {e['week']}: **{format_number(e['duration'])} hours**"
            + (f" ({e['quality']})" if e.get("quality") else "")
            for e in entries
        ]
        return self.respond(
            "😴 **Your Sleep History:**\n\n" + "\n".join(lines) +
            f"\n\n📊 **Average:** {avg:.1f} hours\n\n"
            "Aim for 7-9 hours of sleep. Consider a pregnancy pillow for better comfort!",
            action="list",
        )

    async def handle_write(self, fields: Dict, query: str, context) -> Dict:
        duration = fields["duration"]
        await self.save_entry(context, {
            "duration": duration,
            "bedtime": "",
            "wake_time": "",
            "quality": fields.get("quality", ""),
            "note": query,
        })
        return self.respond(
            f"✅ **Sleep logged:** {format_number(duration)} hours\n\n"
            f"📅 Week {context.current_week}\n\n{duration_advice(duration)}",
            action="log",
            success=True,
        )

    def clarify(self, context) -> Dict:
        return self.follow_up(
            f"I can help you track your sleep at week {context.current_week}.\n\n"
            'How many hours did you sleep? Just say something like "I slept 7 hours" '
            'or "7 hours of sleep"'
        )
