"""
Appointments Tracker - upcoming visit listing.

Free-text scheduling requests get a prompt for title, date, time and
location; appointments are only created through RecordStore.create_appointment.
"""

from typing import Dict

from core.categories import Intent
from trackers.base import BaseTracker


class AppointmentsTracker(BaseTracker):
    """Appointment listing and scheduling prompts"""

    intent = Intent.APPOINTMENTS
    read_keywords = ("show", "list", "what", "upcoming", "when is", "next")
    required_fields = ["title", "date", "time", "location"]

    async def handle_read(self, query: str, context) -> Dict:
        today = self.now().date().isoformat()
        appointments = await self.record_store.get_appointments()
        upcoming = [
            a for a in appointments
            if a.get("appointment_status") == "pending" and a.get("appointment_date", "") >= today
        ]

        if not upcoming:
            return self.respond(
                "You don't have any upcoming appointments scheduled. Would you like to create one? "
                "I can help you schedule an appointment with your healthcare provider.",
                action="list",
            )

        lines = [
            f"• **{a['title']}** on {a['appointment_date']} at {a.get('appointment_time') or '-'}\n"
            f"  📍 {a.get('appointment_location') or '-'}"
            for a in upcoming[:5]
        ]
        return self.respond(
            "📅 **Your Upcoming Appointments:**\n\n" + "\n\n".join(lines) +
            "\n\nWould you like to schedule a new appointment or modify an existing one?",
            action="list",
        )

    def clarify(self, context) -> Dict:
        response = self.follow_up(
            "I can help you schedule an appointment! Please provide:\n\n"
            "1. **Type of appointment** (e.g., Checkup, Ultrasound, Blood Test)\n"
            "2. **Preferred date**\n3. **Preferred time**\n4. **Location/Hospital**\n\n"
            'You can say something like: "Schedule a checkup for tomorrow at 10 AM at City Hospital"'
        )
        response["action"] = "create"
        return response
