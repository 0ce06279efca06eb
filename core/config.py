"""
Configuration loading.

Reads config.yaml and merges it over built-in defaults so a missing or
partial file still yields a complete configuration.
"""

import copy
import os
from typing import Dict

import yaml

from utils.logger import get_logger

logger = get_logger("config")


DEFAULT_CONFIG: Dict = {
    "cache": {
        "max_age_days": 30,
        "max_tracking_entries": 10,
        "max_memory_entries": 50,
    },
    "generation": {
        "model": "local-model",
        "max_tokens": 512,
        "temperature": 0.7,
    },
    "guidelines": {
        "search_limit": 3,
        "week_limit": 3,
    },
    "trackers": {},
}


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: str = "config.yaml") -> Dict:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Configuration dict (defaults when the file is missing or unreadable)
    """
    if not os.path.exists(config_path):
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, "r") as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Error loading config: {e}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(loaded, dict):
        logger.warning(f"Config at {config_path} is not a mapping, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    return _deep_merge(DEFAULT_CONFIG, loaded)
