"""
Discharge Tracker - type, colour and bleeding observations.
"""

from typing import Dict, Optional

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import find_first

TYPES = ("egg white", "watery", "sticky", "creamy", "thick", "thin", "mucus", "clumpy")
COLORS = ("clear", "white", "yellow", "green", "grey", "gray", "brown", "pink", "red")
BLEEDING = ("heavy", "spotting", "light")


class DischargeTracker(BaseTracker):
    """Discharge tracking"""

    intent = Intent.DISCHARGE
    required_fields = ["type", "color", "bleeding"]

    def extract(self, query: str) -> Optional[Dict]:
        discharge_type = find_first(query, TYPES)
        color = find_first(query, COLORS)
        if not discharge_type and not color:
            return None
        return {
            "type": discharge_type or "",
            "color": color or "",
            "bleeding": find_first(query, BLEEDING) or "none",
        }

    async def handle_read(self, query: str, context) -> Dict:
        entries = self.recent_entries(context)
        if not entries:
            return self.respond("You haven't logged any discharge observations yet.", action="list")
        lines = [
            f"• Week {e['week']}: {e.get('type') or 'unspecified'}, {e.get('color') or 'no colour noted'}"
            f" (bleeding: {e.get('bleeding') or 'none'})"
            for e in entries
        ]
        return self.respond("📝 **Your Discharge Log:**\n\n" + "\n".join(lines), action="list")

    async def handle_write(self, fields: Dict, query: str, context) -> Dict:
        await self.save_entry(context, dict(fields, note=query))
        warning = ""
        if fields["bleeding"] == "heavy" or fields["color"] in ("green", "grey", "gray"):
            warning = "\n\n⚠️ Please contact your healthcare provider about this observation."
        return self.respond(
            f"✅ **Discharge logged:** {fields['type'] or 'unspecified'}, "
            f"{fields['color'] or 'no colour noted'}, bleeding: {fields['bleeding']}\n\n"
            f"📅 Week {context.current_week}{warning}",
            action="log",
            success=True,
        )

    def clarify(self, context) -> Dict:
        return self.follow_up(
            f"I can help you log discharge information at week {context.current_week}.\n\n"
            "**Note:** Some discharge is normal during pregnancy, but please consult your "
            "healthcare provider if you notice:\n• Heavy bleeding\n• Unusual color or odor\n"
            "• Accompanied by pain or fever\n\n"
            "Please describe the type, color, and any bleeding."
        )
