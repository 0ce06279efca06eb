"""
Logging utility for the pregnancy companion.

All component loggers live under the "companion" hierarchy
(companion.context_cache, companion.tracker.weight, ...) and share the
console handler installed on the root "companion" logger.
"""

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER = "companion"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _resolve_level(level: Optional[int]) -> int:
    if level is not None:
        return level
    name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def setup_logger(
    level: Optional[int] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root companion logger once.

    Args:
        level: Logging level (default: LOG_LEVEL env var or INFO)
        format_string: Custom format string (optional)

    Returns:
        The root "companion" logger
    """
    root = logging.getLogger(ROOT_LOGGER)

    # Avoid adding handlers multiple times
    if root.handlers:
        if level is not None:
            root.setLevel(level)
        return root

    root.setLevel(_resolve_level(level))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter(format_string or LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )
    root.addHandler(console_handler)

    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a component logger.

    Args:
        name: Component name, e.g. "orchestrator" or "tracker.sleep"

    Returns:
        Logger named "companion.<name>" (the root logger when name is None)
    """
    root = setup_logger()
    if not name:
        return root
    return root.getChild(name)
