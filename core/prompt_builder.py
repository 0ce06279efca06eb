"""
Prompt assembly for the text generation backend.

Turns a UserContext and retrieved guidelines into the system prompt and
user turn sent for general questions.
"""

from typing import Dict, List, Optional

from core.categories import Intent

SYSTEM_PROMPT = (
    "You are an inclusive, empathetic, and knowledgeable pregnancy companion. You provide "
    "personalized, evidence-based guidance while being culturally sensitive and supportive.\n\n"
    "Key capabilities:\n"
    "- Schedule and manage appointments\n"
    "- Track health metrics (weight, mood, symptoms, sleep, blood pressure)\n"
    "- Provide pregnancy-related guidance based on the current week\n"
    "- Answer questions about health and wellness during pregnancy\n\n"
    "Guidelines:\n"
    "- Always be supportive and encouraging\n"
    "- If asked about medical advice, recommend consulting healthcare providers\n"
    "- Keep responses concise and helpful\n"
    "- Use a warm, caring tone while being informative\n"
    "- Consider the user's current pregnancy week when providing advice"
)

INSTRUCTIONS = (
    "Instructions:\n"
    "1. Consider the user's current pregnancy week and location when providing advice\n"
    "2. Be inclusive, supportive, and culturally sensitive\n"
    "3. If the user's tracking data shows concerning patterns, address them gently\n"
    "4. Always prioritize safety and recommend consulting healthcare providers when appropriate\n"
    "5. Keep responses concise - aim for 2-4 sentences for simple queries"
)

# Entries per category included in a prompt
PROMPT_ENTRIES = 3


def _or_unknown(value) -> str:
    return "Unknown" if value in (None, "") else str(value)


def format_user_context(context) -> str:
    if context is None:
        return "User Profile: Not available (please complete profile setup)"
    return (
        "User Profile & Current Status:\n"
        f"- Pregnancy Week: {_or_unknown(context.current_week)}\n"
        f"- Location: {_or_unknown(context.location)}\n"
        f"- Age: {_or_unknown(context.age)}\n"
        f"- Current Weight: {_or_unknown(context.weight)} kg\n"
        f"- Due Date: {_or_unknown(context.due_date)}"
    )


def _note(entry: Dict) -> str:
    return f" - {entry['note']}" if entry.get("note") else ""


def _format_entry(category: Intent, entry: Dict) -> str:
    week = f"Week {entry.get('week')}"
    if category == Intent.WEIGHT:
        return f"{week}: {entry.get('weight')} kg{_note(entry)}"
    if category == Intent.MEDICINE:
        status = "Taken" if entry.get("taken") else "Missed"
        return f"{week}: {entry.get('name')} ({entry.get('dose')}) at {entry.get('time')} - {status}"
    if category == Intent.SYMPTOMS:
        return f"{week}: {entry.get('symptom')}{_note(entry)}"
    if category == Intent.BLOOD_PRESSURE:
        return f"{week}: {entry.get('systolic')}/{entry.get('diastolic')} at {entry.get('time')}{_note(entry)}"
    if category == Intent.DISCHARGE:
        return f"{week}: {entry.get('type') or 'unspecified'}, {entry.get('color') or 'no colour noted'}"
    if category == Intent.MOOD:
        intensity = f" ({entry['intensity']})" if entry.get("intensity") else ""
        return f"{week}: {entry.get('mood')}{intensity}{_note(entry)}"
    quality = f" ({entry['quality']})" if entry.get("quality") else ""
    return f"{week}: {entry.get('duration')} hours{quality}"


SECTION_TITLES = {
    Intent.WEIGHT: "Weight Tracking",
    Intent.MEDICINE: "Medicine Tracking",
    Intent.SYMPTOMS: "Recent Symptoms",
    Intent.BLOOD_PRESSURE: "Blood Pressure",
    Intent.DISCHARGE: "Discharge",
    Intent.MOOD: "Mood Tracking",
    Intent.SLEEP: "Sleep Tracking",
}


def format_tracking_data(context) -> str:
    if context is None:
        return ""
    lines: List[str] = []
    for category, title in SECTION_TITLES.items():
        entries = context.entries(category)[:PROMPT_ENTRIES]
        if not entries:
            continue
        lines.append(f"{title}:")
        lines.extend(f"  {_format_entry(category, entry)}" for entry in entries)
    return "\n".join(lines)


def build_prompt(query: str, guidelines_text: str = "", context=None) -> str:
    """User turn for a general question: profile, tracking, query, guidelines."""
    sections = [format_user_context(context)]
    tracking = format_tracking_data(context)
    if tracking:
        sections.append(f"Recent Health Tracking:\n{tracking}")
    sections.append(f"User Query: {query}")
    if guidelines_text:
        sections.append(f"Relevant Pregnancy Guidelines:\n{guidelines_text}")
    sections.append(INSTRUCTIONS)
    sections.append("Please provide a helpful, personalized response:")
    return "\n\n".join(sections)


def build_conversation(query: str, guidelines_text: str = "", context=None,
                       system_prompt: Optional[str] = None) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt or SYSTEM_PROMPT},
        {"role": "user", "content": build_prompt(query, guidelines_text, context)},
    ]


def build_emergency_message(current_week: Optional[int] = None) -> str:
    """Canned safety script; independent of the query and of text generation."""
    return (
        "🚨 **Emergency Alert**\n\n"
        "If you're experiencing severe symptoms, please:\n\n"
        "1. **Call Emergency Services** (911 or your local emergency number) immediately\n"
        "2. **Contact your healthcare provider** right away\n"
        "3. **Stay calm** and don't drive yourself - ask someone to take you or call an ambulance\n\n"
        "Common pregnancy emergencies requiring immediate care:\n"
        "- Heavy bleeding\n"
        "- Severe abdominal pain\n"
        "- Chest pain or difficulty breathing\n"
        "- Severe headache with vision changes\n"
        "- Significantly reduced or no fetal movement\n\n"
        f"You're currently at week {current_week or 'unknown'}. Your safety is the priority.\n\n"
        "**Please seek professional medical help immediately.**"
    )
