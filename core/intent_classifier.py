"""
Keyword and pattern intent classifier.

Scores a free-text query against every category in INTENT_PATTERNS and
returns the best label. Pure and deterministic: no I/O, no state.

Scoring:
- +1 per keyword found as a substring of the normalized query
- +2 per structural pattern that matches
- emergency is checked first and wins outright on any hit
- ties go to the category listed first in Intent
- nothing above zero means 'general'
"""

import re
from dataclasses import dataclass, field, asdict
from typing import Dict, FrozenSet, List, Pattern, Tuple

from core.categories import Intent
from utils.logger import get_logger

logger = get_logger("intent_classifier")


@dataclass(frozen=True)
class IntentPatterns:
    """Evidence for one intent."""
    keywords: FrozenSet[str]
    patterns: Tuple[Pattern, ...]


def _compile(*expressions: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(expr, re.IGNORECASE) for expr in expressions)


INTENT_PATTERNS: Dict[Intent, IntentPatterns] = {
    Intent.APPOINTMENTS: IntentPatterns(
        keywords=frozenset({"appointment", "schedule", "book", "meeting", "visit",
                            "consultation", "doctor", "checkup"}),
        patterns=_compile(
            r"\bappointments?\b",
            r"\bschedule\b.*\b(visit|doctor|checkup)\b",
            r"\bbook\b.*\b(appointment|visit)\b",
            r"\bsee\b.*\bdoctor\b",
        ),
    ),
    Intent.WEIGHT: IntentPatterns(
        keywords=frozenset({"weight", "weigh", "kg", "kilos", "pounds", "lbs", "gained", "lost"}),
        patterns=_compile(
            r"\bweight\b",
            r"\bweigh\b",
            r"\b\d+(\.\d+)?\s*(kg|kilos?|pounds?|lbs)\b",
            r"\bgained?\b.*\b(weight|kg)\b",
            r"\blost\b.*\b(weight|kg)\b",
        ),
    ),
    Intent.SYMPTOMS: IntentPatterns(
        keywords=frozenset({"symptom", "feeling", "pain", "ache", "nausea", "sick", "dizzy",
                            "headache", "fatigue", "cramp"}),
        patterns=_compile(
            r"\bsymptoms?\b",
            r"\bfeeling\b.*\b(sick|dizzy|tired|nauseous)\b",
            r"\bhave\b.*\b(pain|ache|nausea|headache|cramp)",
            r"\bmorning\s*sickness\b",
        ),
    ),
    Intent.BLOOD_PRESSURE: IntentPatterns(
        keywords=frozenset({"blood pressure", "bp", "pressure", "systolic", "diastolic",
                            "hypertension"}),
        patterns=_compile(
            r"\bblood\s*pressure\b",
            r"\bbp\b",
            r"\b\d{2,3}\s*/\s*\d{2,3}\b",
            r"\bsystolic\b",
            r"\bdiastolic\b",
        ),
    ),
    Intent.MEDICINE: IntentPatterns(
        keywords=frozenset({"medicine", "medication", "med", "pill", "tablet", "drug", "took",
                            "taking", "prescription", "supplement", "vitamin"}),
        patterns=_compile(
            r"\bmedicine\b",
            r"\bmedications?\b",
            r"\btook\b.*\b(pill|tablet|medicine|medication)",
            r"\btaking\b.*\b(medicine|medication|supplement)",
            r"\bprescription\b",
            r"\b\d+(\.\d+)?\s*(mg|mcg|iu)\b",
        ),
    ),
    Intent.DISCHARGE: IntentPatterns(
        keywords=frozenset({"discharge", "bleeding", "spotting", "flow", "mucus"}),
        patterns=_compile(
            r"\bdischarge\b",
            r"\bbleeding\b",
            r"\bspotting\b",
            r"\bvaginal\b",
        ),
    ),
    Intent.MOOD: IntentPatterns(
        keywords=frozenset({"mood", "feeling", "happy", "sad", "anxious", "stressed", "calm",
                            "emotional", "depressed", "worried"}),
        patterns=_compile(
            r"\bmood\b",
            r"\bfeeling\s+(very\s+|so\s+|a\s+bit\s+)?(happy|sad|anxious|stressed|calm|emotional|depressed|worried)\b",
            r"\bi\s*(am|feel|'m)\s+(very\s+|so\s+|a\s+bit\s+)?(happy|sad|anxious|stressed|calm|emotional|depressed|worried)\b",
        ),
    ),
    Intent.SLEEP: IntentPatterns(
        keywords=frozenset({"sleep", "slept", "sleeping", "bedtime", "wake", "woke", "insomnia",
                            "rest", "tired", "fatigue"}),
        patterns=_compile(
            r"\bsleep\b",
            r"\bslept\b",
            r"\bbedtime\b",
            r"\bwoke\b.*\bup\b",
            r"\binsomnia\b",
            r"\bhours?\s*of\s*sleep\b",
        ),
    ),
    Intent.GUIDELINES: IntentPatterns(
        keywords=frozenset({"vaccine", "vaccination", "guideline", "recommend", "test", "scan",
                            "ultrasound", "screening", "what should", "advice"}),
        patterns=_compile(
            r"\bvaccin(e|es|ation)\b",
            r"\bguidelines?\b",
            r"\brecommend",
            r"\bwhat\s*(test|scan|should)\b",
            r"\bscreening\b",
            r"\bultrasound\b",
            r"\badvice\b",
        ),
    ),
    Intent.TASKS: IntentPatterns(
        keywords=frozenset({"task", "todo", "reminder", "to-do", "checklist"}),
        patterns=_compile(
            r"\btasks?\b",
            r"\btodo\b",
            r"\bto-do\b",
            r"\breminders?\b",
            r"\bchecklist\b",
        ),
    ),
    Intent.EMERGENCY: IntentPatterns(
        keywords=frozenset({"emergency", "urgent", "help", "sos", "danger", "severe",
                            "bleeding heavily", "cant breathe", "can't breathe", "chest pain"}),
        patterns=_compile(
            r"\bemergency\b",
            r"\burgent\b",
            r"\bsos\b",
            r"\bhelp\s*me\b",
            r"\bsevere\s*(pain|bleeding)\b",
            r"\bcan'?t\s*breathe\b",
            r"\bchest\s*pain\b",
        ),
    ),
    Intent.ANALYTICS: IntentPatterns(
        keywords=frozenset({"analytics", "stats", "statistics", "trend", "average", "summary",
                            "report", "show", "history", "track"}),
        patterns=_compile(
            r"\banalytics\b",
            r"\bstats\b",
            r"\btrends?\b",
            r"\bshow\b.*\b(weight|sleep|mood|history)\b",
            r"\bsummary\b",
            r"\breport\b",
        ),
    ),
    Intent.NAVIGATION: IntentPatterns(
        keywords=frozenset({"go to", "open", "show", "navigate", "take me"}),
        patterns=_compile(
            r"\bgo\s*to\b",
            r"\bopen\b.*\b(screen|page|settings|profile|calendar|home)\b",
            r"\bnavigate\b.*\bto\b",
            r"\btake\s*me\s*to\b",
        ),
    ),
}

# Confidence reaches 1.0 at this score
CONFIDENCE_SCALE = 5.0
EMERGENCY_SCORE = 10


@dataclass(frozen=True)
class IntentClassification:
    """Result of classify_with_confidence. Never persisted."""
    intent: Intent
    confidence: float = 0.0
    scores: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["intent"] = self.intent.value
        return data


class IntentClassifier:
    """Maps free text to exactly one Intent."""

    def __init__(self, patterns: Dict[Intent, IntentPatterns] = None):
        self.patterns = patterns if patterns is not None else INTENT_PATTERNS

    @staticmethod
    def normalize(query: str) -> str:
        return query.strip().lower()

    def all_intents(self) -> List[Intent]:
        """Labels with patterns, in enumeration order."""
        return [intent for intent in Intent if intent in self.patterns]

    def matches(self, query: str, intent: Intent) -> bool:
        """True if any keyword or pattern of `intent` hits the query."""
        config = self.patterns.get(intent)
        if config is None:
            return False
        text = self.normalize(query)
        return (
            any(keyword in text for keyword in config.keywords)
            or any(pattern.search(text) for pattern in config.patterns)
        )

    def score(self, query: str, intent: Intent) -> int:
        config = self.patterns[intent]
        text = self.normalize(query)
        keyword_hits = sum(1 for keyword in config.keywords if keyword in text)
        pattern_hits = sum(1 for pattern in config.patterns if pattern.search(text))
        return keyword_hits + 2 * pattern_hits

    def classify_with_confidence(self, query) -> IntentClassification:
        """
        Classify a query and report the per-category scores.

        Args:
            query: Raw user text (non-strings classify as general)

        Returns:
            IntentClassification with confidence min(max_score / 5, 1.0)
        """
        if not isinstance(query, str) or not query.strip():
            return IntentClassification(intent=Intent.GENERAL)

        if self.matches(query, Intent.EMERGENCY):
            return IntentClassification(
                intent=Intent.EMERGENCY,
                confidence=1.0,
                scores={Intent.EMERGENCY.value: EMERGENCY_SCORE},
            )

        scores = {}
        best_intent, best_score = Intent.GENERAL, 0
        for intent in self.all_intents():
            if intent == Intent.EMERGENCY:
                continue
            value = self.score(query, intent)
            if value > 0:
                scores[intent.value] = value
            # Strictly greater: the earlier category keeps a tie
            if value > best_score:
                best_intent, best_score = intent, value

        confidence = min(best_score / CONFIDENCE_SCALE, 1.0) if best_score > 0 else 0.0
        logger.debug(f"Scores for '{query.strip()[:80]}': {scores or 'none'}")
        return IntentClassification(intent=best_intent, confidence=confidence, scores=scores)

    def classify(self, query) -> Intent:
        """Return only the winning label."""
        return self.classify_with_confidence(query).intent
