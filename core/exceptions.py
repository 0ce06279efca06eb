"""
Exception hierarchy for the companion core.

Only storage and generation failures cross component boundaries.
Classification and parsing misses are returned as data, never raised.
"""


class CompanionError(Exception):
    """Base class for all companion errors."""


class StorageError(CompanionError):
    """The record store or the persistent cache tier failed."""


class GenerationError(CompanionError):
    """The text generation backend failed."""


class ConfigError(CompanionError):
    """Required configuration is missing or invalid."""
