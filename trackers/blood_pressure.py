"""
Blood Pressure Tracker - readings in systolic/diastolic form.
"""

import re
from typing import Dict, Optional

from core.categories import Intent
from trackers.base import BaseTracker

READING = re.compile(r"(\d{2,3})\s*[/\\]\s*(\d{2,3})")


def assess_reading(systolic: int, diastolic: int) -> str:
    if systolic < 120 and diastolic < 80:
        return "✅ Normal blood pressure"
    if systolic < 140 and diastolic < 90:
        return "⚠️ Slightly elevated - monitor closely"
    return "🚨 High blood pressure - please consult your healthcare provider"


class BloodPressureTracker(BaseTracker):
    """Blood pressure tracking"""

    intent = Intent.BLOOD_PRESSURE
    required_fields = ["systolic", "diastolic"]

    def extract(self, query: str) -> Optional[Dict]:
        match = READING.search(query)
        if not match:
            return None
        systolic, diastolic = int(match.group(1)), int(match.group(2))
        if systolic <= diastolic:
            return None
        return {"systolic": systolic, "diastolic": diastolic}

    async def handle_read(self, query: str, context) -> Dict:
        entries = self.recent_entries(context)
        if not entries:
            return self.respond(
                "You haven't logged any blood pressure readings yet. Regular BP monitoring is "
                'important during pregnancy. What\'s your current reading? (e.g., "120/80")',
                action="list",
            )

        lines = [
            f"• Week {e['week']}: **{e['systolic']}/{e['diastolic']}** at {e.get('time') or '-'}"
            for e in entries
        ]
        return self.respond(
            "💓 **Your Blood Pressure History:**\n\n" + "\n".join(lines) +
            "\n\nNormal pregnancy BP is typically below 140/90 mmHg. "
            "Consult your provider if readings are consistently high.",
            action="list",
        )

    async def handle_write(self, fields: Dict, query: str, context) -> Dict:
        systolic, diastolic = fields["systolic"], fields["diastolic"]
        time = self.now().strftime("%H:%M")
        await self.save_entry(context, {
            "systolic": systolic,
            "diastolic": diastolic,
            "time": time,
            "note": "",
        })
        return self.respond(
            f"✅ **Blood Pressure Logged**\n\n📊 **{systolic}/{diastolic} mmHg** at {time}\n"
            f"📅 Week {context.current_week}\n\n{assess_reading(systolic, diastolic)}\n\n"
            "Regular monitoring is important during pregnancy. Keep tracking!",
            action="log",
            success=True,
        )

    def clarify(self, context) -> Dict:
        return self.follow_up(
            f"I can help you track your blood pressure at week {context.current_week}.\n\n"
            "Please provide your reading in the format: **systolic/diastolic**\n"
            'Example: "120/80" or "My BP is 118/75"'
        )
