"""
Navigation Tracker - resolves which screen the user asked for.
"""

from typing import Dict

from core.categories import Intent
from trackers.base import BaseTracker
from utils.helpers import bullet_list, contains_any

SCREENS = (
    ("Home", ("home", "main", "dashboard")),
    ("Profile", ("profile", "settings", "account")),
    ("Calendar", ("calendar", "appointments", "schedule")),
    ("Weight", ("weight", "weigh")),
    ("Symptoms", ("symptoms",)),
    ("Chat", ("chat", "assistant")),
)


class NavigationTracker(BaseTracker):
    """Screen navigation requests"""

    intent = Intent.NAVIGATION

    async def handle(self, query: str, context) -> Dict:
        for screen, words in SCREENS:
            if contains_any(query, words):
                return self.respond(
                    f"Taking you to the {screen} screen...",
                    action="navigate",
                    screen=screen,
                )

        names = bullet_list([screen for screen, _ in SCREENS])
        return self.respond(f"Where would you like to go? Available screens:\n{names}")
