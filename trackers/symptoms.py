"""
Symptoms Tracker - common pregnancy symptom logging.
"""

from typing import Dict, Optional

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import find_first

# Multi-word terms first so "back pain" wins over a bare match
COMMON_SYMPTOMS = (
    "morning sickness", "back pain", "nausea", "headache", "fatigue", "dizzy",
    "cramp", "swelling", "heartburn", "constipation", "insomnia", "vomiting",
)


class SymptomsTracker(BaseTracker):
    """Symptom tracking"""

    intent = Intent.SYMPTOMS
    required_fields = ["symptom"]

    def extract(self, query: str) -> Optional[Dict]:
        symptom = find_first(query, COMMON_SYMPTOMS)
        if symptom is None:
            # "cramps", "headaches"
            symptom = next((s for s in COMMON_SYMPTOMS if s in query.lower()), None)
        return {"symptom": symptom} if symptom else None

    async def handle_read(self, query: str, context) -> Dict:
        entries = self.recent_entries(context)
        if not entries:
            return self.respond(
                "You haven't logged any symptoms yet. Tracking symptoms helps identify patterns "
                "and concerns. What symptoms are you experiencing?",
                action="list",
            )
        lines = [
            f"• Week {e['week']}: **{e['symptom']}**" + (f" - {e['note']}" if e.get("note") else "")
            for e in entries
        ]
        return self.respond(
            "📋 **Your Recent Symptoms:**\n\n" + "\n".join(lines) +
            "\n\nIf any symptoms are severe or concerning, please consult your healthcare provider.",
            action="list",
        )

    async def handle_write(self, fields: Dict, query: str, context) -> Dict:
        await self.save_entry(context, {"symptom": fields["symptom"], "note": query})
        return self.respond(
            f"✅ **Symptom logged:** {fields['symptom']}\n\n📅 Week {context.current_week}\n\n"
            "Common during pregnancy, but if symptoms persist or worsen, please consult your "
            "healthcare provider. Is there anything else you'd like to track?",
            action="log",
            success=True,
        )

    def clarify(self, context) -> Dict:
        return self.follow_up(
            f"I can help you track symptoms at week {context.current_week}.\n\n"
            "Common pregnancy symptoms include:\n• Nausea/Morning sickness\n• Fatigue\n"
            "• Headaches\n• Back pain\n• Heartburn\n\nWhat symptoms are you experiencing?"
        )
