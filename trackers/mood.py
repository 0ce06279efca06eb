"""
Mood Tracker - emotional wellbeing logging.
"""

from typing import Dict, Optional

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import find_first

MOODS = ("happy", "sad", "anxious", "stressed", "calm", "excited", "tired",
         "emotional", "worried", "peaceful", "depressed")
HIGH_INTENSITY = ("extremely", "very", "really", "so")
LOW_INTENSITY = ("slightly", "a bit", "a little", "somewhat")


class MoodTracker(BaseTracker):
    """Mood tracking"""

    intent = Intent.MOOD
    required_fields = ["mood"]

    def extract(self, query: str) -> Optional[Dict]:
        mood = find_first(query, MOODS)
        if not mood:
            return None
        if find_first(query, HIGH_INTENSITY):
            intensity = "high"
        elif find_first(query, LOW_INTENSITY):
            intensity = "low"
        else:
            intensity = ""
        return {"mood": mood, "intensity": intensity}

    async def handle_read(self, query: str, context) -> Dict:
        entries = self.recent_entries(context)
        if not entries:
            return self.respond(
                "You haven't logged any moods yet. How are you feeling today?",
                action="list",
            )
        lines = [
            f"• Week {e['week']}: **{e['mood']}**"
            + (f" ({e['intensity']})" if e.get("intensity") else "")
            for e in entries
        ]
        return self.respond("💭 **Your Recent Moods:**\n\n" + "\n".join(lines), action="list")

    async def handle_write(self, fields: Dict, query: str, context) -> Dict:
        await self.save_entry(context, {
            "mood": fields["mood"],
            "intensity": fields["intensity"],
            "note": query,
        })
        return self.respond(
            f"✅ **Mood logged:** {fields['mood']}\n\n📅 Week {context.current_week}\n\n"
            "Emotional changes are common during pregnancy due to hormonal shifts. Remember to:\n"
            "• Practice self-care\n• Talk to loved ones\n• Rest when needed\n\n"
            "Your feelings are valid! 💕",
            action="log",
            success=True,
        )

    def clarify(self, context) -> Dict:
        return self.follow_up(
            "How are you feeling today? 💭\n\nCommon moods to track:\n"
            "• Happy 😊\n• Anxious 😟\n• Calm 😌\n• Tired 😴\n• Emotional 🥺\n\n"
            "Just tell me how you're feeling!"
        )
