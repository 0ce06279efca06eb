"""
Helper utility functions.
"""

import re
from typing import Dict, Iterable, List, Optional


def make_response(
    message: str,
    intent: Optional[str] = None,
    action: Optional[str] = None,
    **extra
) -> Dict:
    """
    Build the response dict returned to callers of the orchestrator.

    Args:
        message: Text shown to the user
        intent: Intent label that produced the response
        action: What the handler did ('list', 'log', 'create', ...)
        **extra: Additional keys (success, screen, emergency, ...)

    Returns:
        Response dict with 'requires_follow_up' and 'required_fields' defaulted
    """
    response = {
        "message": message,
        "intent": intent,
        "action": action,
        "requires_follow_up": False,
        "required_fields": [],
    }
    response.update(extra)
    return response


def format_number(value: float) -> str:
    """
    Format a reading without a trailing '.0'.

    Args:
        value: Numeric value

    Returns:
        Formatted string (e.g., 65.0 -> "65", 65.25 -> "65.2")
    """
    rounded = round(float(value), 1)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.1f}"


def average(values: Iterable[float]) -> Optional[float]:
    """Mean of the non-null values, or None when there are none."""
    numbers = [float(v) for v in values if v is not None]
    if not numbers:
        return None
    return sum(numbers) / len(numbers)


def contains_any(text: str, words: Iterable[str]) -> bool:
    """
    Check if text contains any of the given words (case-insensitive substring).

    Args:
        text: Text to check
        words: Candidate substrings

    Returns:
        True if any word is present
    """
    text_lower = text.lower()
    return any(word in text_lower for word in words)


def find_first(text: str, vocabulary: Iterable[str]) -> Optional[str]:
    """
    Return the first vocabulary term that occurs in text as a whole word.

    Vocabulary order decides ties, so list multi-word terms first.
    """
    text_lower = text.lower()
    for term in vocabulary:
        if re.search(r"\b" + re.escape(term) + r"\b", text_lower):
            return term
    return None


def truncate_text(text: str, max_length: int = 100) -> str:
    """
    Truncate text with ellipsis.

    Args:
        text: Text to truncate
        max_length: Maximum length

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text

    return text[:max_length-3] + "..."


def bullet_list(lines: List[str]) -> str:
    """Join lines as a '•' bulleted block."""
    return "\n".join(f"• {line}" for line in lines)
