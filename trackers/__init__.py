"""
Intent handlers for the Pregnancy Companion.

Each tracker answers one intent category.
"""

from .base import BaseTracker
from .registry import TrackerRegistry

__all__ = ["BaseTracker", "TrackerRegistry"]
