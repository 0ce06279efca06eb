"""
Guidelines Tracker - week-appropriate pregnancy guidance.
"""

from typing import Dict

from core.categories import Intent
from core.guidelines import guidelines_for_week, search_guidelines
from trackers.base import BaseTracker

MAX_SHOWN = 4


class GuidelinesTracker(BaseTracker):
    """Guideline lookup"""

    intent = Intent.GUIDELINES

    async def handle(self, query: str, context) -> Dict:
        week = context.current_week
        search_limit = self.config.get("search_limit", 3)
        week_limit = self.config.get("week_limit", 3)

        selected = list(search_guidelines(query, week, search_limit))
        seen = {g.id for g in selected}
        for guideline in guidelines_for_week(week, week_limit):
            if guideline.id not in seen:
                selected.append(guideline)
                seen.add(guideline.id)

        guidance = "\n\n".join(
            f"📌 **{g.title}** (Weeks {g.week_range})\n   {g.content}" for g in selected[:MAX_SHOWN]
        )
        return self.respond(
            f"📚 **Pregnancy Guidelines for Week {week}:**\n\n{guidance}\n\n"
            "*These guidelines are based on MoHFW, FOGSI, and WHO recommendations. "
            "Always consult your healthcare provider for personalized advice.*",
            action="info",
        )
