"""
Medicine Tracker - prescriptions and supplements.

A dose is only recorded when both a medicine name and a dose are present,
e.g. "Took folic acid 5mg this morning".
"""

import re
from typing import Dict, Optional

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import find_first

KNOWN_MEDICINES = (
    "folic acid", "iron", "calcium", "vitamin d", "vitamin b12", "vitamin c", "dha",
    "omega 3", "prenatal vitamin", "paracetamol", "acetaminophen", "aspirin",
    "levothyroxine", "metformin", "insulin", "progesterone", "doxylamine",
)
DOSE = re.compile(r"(\d+(?:\.\d+)?)\s*(mg|mcg|g|ml|iu|tablets?|capsules?|pills?)\b", re.IGNORECASE)
# Name written between the verb and the dose: "took <name> 500mg"
NAME_BEFORE_DOSE = re.compile(r"\b(?:took|taking|take|had)\s+(?:my\s+|a\s+|an\s+)?([a-z][a-z0-9 \-]*?)\s+\d", re.IGNORECASE)
CLOCK_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE)
DAY_PARTS = ("morning", "afternoon", "evening", "night")


def _extract_time(query: str) -> Optional[str]:
    match = CLOCK_TIME.search(query)
    if match:
        hour, minute, meridiem = int(match.group(1)), match.group(2) or "00", match.group(3).upper()
        return f"{hour}:{minute} {meridiem}"
    part = find_first(query, DAY_PARTS)
    if part:
        return part.title()
    return None


class MedicineTracker(BaseTracker):
    """Medicine tracking"""

    intent = Intent.MEDICINE
    required_fields = ["name", "dose", "time"]

    def extract(self, query: str) -> Optional[Dict]:
        dose = DOSE.search(query)
        if not dose:
            return None

        name = find_first(query, KNOWN_MEDICINES)
        if not name:
            match = NAME_BEFORE_DOSE.search(query)
            name = match.group(1).strip() if match else None
        if not name:
            return None

        return {
            "name": name.title(),
            "dose": f"{dose.group(1)}{dose.group(2).lower()}",
            "time": _extract_time(query) or self.now().strftime("%H:%M"),
        }

    async def handle_read(self, query: str, context) -> Dict:
        entries = self.recent_entries(context)
        if not entries:
            return self.respond(
                "You haven't logged any medications yet. Would you like to log a prescription or "
                "supplement you're taking?",
                action="list",
            )
        lines = [
            f"{'✅' if e.get('taken') else '⏳'} **{e['name']}** - {e['dose']} at {e['time']} "
            f"(Week {e['week']})"
            for e in entries
        ]
        return self.respond(
            "💊 **Your Medicine Log:**\n\n" + "\n".join(lines) + "\n\nWould you like to log a new medication?",
            action="list",
        )

    async def handle_write(self, fields: Dict, query: str, context) -> Dict:
        await self.save_entry(context, {
            "name": fields["name"],
            "dose": fields["dose"],
            "time": fields["time"],
            "taken": True,
            "note": "",
        })
        return self.respond(
            f"✅ **Medicine logged:** {fields['name']} {fields['dose']} ({fields['time']})\n\n"
            f"📅 Week {context.current_week}",
            action="log",
            success=True,
        )

    def clarify(self, context) -> Dict:
        return self.follow_up(
            f"I can help you log your medication at week {context.current_week}.\n\n"
            "Please provide:\n1. **Medicine name** (e.g., Folic Acid, Iron supplement)\n"
            "2. **Dose** (e.g., 500mg, 1 tablet)\n3. **Time** (e.g., Morning, 8 AM)\n\n"
            'Example: "Took Folic Acid 5mg this morning"'
        )
