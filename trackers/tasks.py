"""
Tasks Tracker - antenatal checklist for the current week.

Features:
- Pending tasks whose week range covers the current week
- "I finished the NT scan" style completion
"""

from typing import Dict

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import contains_any

COMPLETION_WORDS = ("done", "completed", "complete", "finished", "did the")
PRIORITY_MARKERS = {"high": "🔴", "medium": "🟡"}


class TasksTracker(BaseTracker):
    """Weekly task checklist"""

    intent = Intent.TASKS

    async def handle(self, query: str, context) -> Dict:
        week = context.current_week
        tasks = await self.record_store.get_tasks(week)
        pending = [t for t in tasks if t.get("task_status", "pending") == "pending"]

        if contains_any(query, COMPLETION_WORDS):
            query_lower = query.lower()
            finished = next((t for t in pending if t["title"].lower() in query_lower), None)
            if finished:
                await self.record_store.update_task_status(finished["id"], "completed")
                await self.context_cache.update_cache(context.user_id, self.intent, "update")
                self.logger.info(f"Marked task '{finished['title']}' completed")
                return self.respond(
                    f"✅ Marked **{finished['title']}** as completed for week {week}.",
                    action="complete",
                    success=True,
                )

        if not pending:
            return self.respond(
                f"✅ You're all caught up for week {week}! No pending tasks.",
                action="list",
            )

        lines = [
            f"{PRIORITY_MARKERS.get(t.get('task_priority'), '🟢')} **{t['title']}**\n   {t.get('content', '')}"
            for t in pending[:5]
        ]
        high = sum(1 for t in pending if t.get("task_priority") == "high")
        footer = f"\n\n⚠️ You have {high} high-priority task(s)." if high else ""
        return self.respond(
            f"📋 **Tasks for Week {week}:**\n\n" + "\n\n".join(lines) + footer,
            action="list",
        )
