# core/__init__.py
"""
Core infrastructure for the Pregnancy Companion.
"""

from .context_cache import ContextCache, MongoContextStore, UserContext
from .database import RecordStore, init_database
from .intent_classifier import IntentClassifier
from .openai_client import OpenAIClient
from .orchestrator import AgentOrchestrator

__all__ = [
    "AgentOrchestrator",
    "ContextCache",
    "IntentClassifier",
    "MongoContextStore",
    "OpenAIClient",
    "RecordStore",
    "UserContext",
    "init_database",
]
