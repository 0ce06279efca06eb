"""
Weight Tracker - weekly weight logging and history.

Features:
- Weight logging from "65 kg", "my weight is 64.5", "143 lbs"
- Weight history with change since the previous entry
"""

import re
from typing import Dict, Optional

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import format_number

KG_PER_POUND = 0.45359237

WITH_UNIT = re.compile(r"(\d+(?:\.\d+)?)\s*(kg|kilos?|kilograms?|pounds?|lbs?)\b", re.IGNORECASE)
BARE_NUMBER = re.compile(r"\b(\d+(?:\.\d+)?)\b")

# "gained 2 kg", "lost about 1.5 kilos": a change, not a body weight
CHANGE_BEFORE = re.compile(
    r"\b(?:gained|gain|lost|lose|put on|dropped|up|down)\s+(?:about\s+|around\s+|nearly\s+)?$",
    re.IGNORECASE,
)

# Plausible body weight in kilograms
MIN_KG, MAX_KG = 25, 250


class WeightTracker(BaseTracker):
    """Weight tracking"""

    intent = Intent.WEIGHT
    required_fields = ["weight"]

    def extract(self, query: str) -> Optional[Dict]:
        for match in WITH_UNIT.finditer(query):
            if CHANGE_BEFORE.search(query[:match.start()]):
                continue
            value = float(match.group(1))
            if match.group(2).lower().startswith(("pound", "lb")):
                value = round(value * KG_PER_POUND, 1)
            if MIN_KG <= value <= MAX_KG:
                return {"weight": value}
        if WITH_UNIT.search(query):
            return None

        for number in BARE_NUMBER.findall(query):
            value = float(number)
            if MIN_KG <= value <= MAX_KG:
                return {"weight": value}
        return None

    async def handle_read(self, query: str, context) -> Dict:
        entries = self.recent_entries(context)
        if not entries:
            return self.respond(
                f"You haven't logged any weight entries yet. At week {context.current_week}, "
                "tracking your weight is important! Would you like to log your current weight?",
                action="list",
            )

        lines = [
            f"• Week {e['week']}: **{format_number(e['weight'])} kg**"
            + (f" - {e['note']}" if e.get("note") else "")
            for e in entries
        ]
        trend = ""
        if len(entries) > 1 and entries[0].get("weight") is not None and entries[1].get("weight") is not None:
            change = float(entries[0]["weight"]) - float(entries[1]["weight"])
            sign = "+" if change > 0 else ""
            trend = f"\n\n📊 **Recent change:** {sign}{change:.1f} kg since last entry"

        return self.respond(
            "⚖️ **Your Weight History:**\n\n" + "\n".join(lines) + trend +
            "\n\nHealthy weight gain during pregnancy varies by trimester. "
            "Consult your healthcare provider for personalized guidance.",
            action="list",
        )

    async def handle_write(self, fields: Dict, query: str, context) -> Dict:
        await self.save_entry(context, {"weight": fields["weight"], "note": ""})
        return self.respond(
            f"✅ **Weight logged successfully!**\n\n📊 Week {context.current_week}: "
            f"**{format_number(fields['weight'])} kg**\n\n"
            "Keep tracking your weight weekly for the best insights. "
            "Is there anything else you'd like to log?",
            action="log",
            success=True,
        )

    def clarify(self, context) -> Dict:
        return self.follow_up(
            f"I can help you track your weight! You're currently at week {context.current_week}.\n\n"
            'Just tell me your weight, for example: "My weight is 65 kg" or simply "65 kg"'
        )
