"""
Closed set of intent and tracking category identifiers.

The enumeration order is significant: the intent classifier breaks score
ties by the first category in this order.
"""

from enum import Enum


class Intent(str, Enum):
    """Intent labels a query can be classified into."""

    APPOINTMENTS = "appointments"
    WEIGHT = "weight"
    SYMPTOMS = "symptoms"
    BLOOD_PRESSURE = "blood_pressure"
    MEDICINE = "medicine"
    DISCHARGE = "discharge"
    MOOD = "mood"
    SLEEP = "sleep"
    GUIDELINES = "guidelines"
    TASKS = "tasks"
    EMERGENCY = "emergency"
    ANALYTICS = "analytics"
    NAVIGATION = "navigation"
    GENERAL = "general"


# Categories cached in UserContext.tracking_data, in context order
TRACKING_CATEGORIES = (
    Intent.WEIGHT,
    Intent.MEDICINE,
    Intent.SYMPTOMS,
    Intent.BLOOD_PRESSURE,
    Intent.DISCHARGE,
    Intent.MOOD,
    Intent.SLEEP,
)

# Refresh target for the profile-derived context fields
PROFILE = "profile"
