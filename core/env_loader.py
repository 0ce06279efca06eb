# core/env_loader.py
"""
Environment settings for the companion.

- .env is read from the project root (or ENV_FILE) when this module is imported.
- Values in .env take precedence over the OS environment.
- ENV_DEFAULTS holds the offline-friendly default for every setting.
"""
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parent.parent

ENV_DEFAULTS: Dict[str, str] = {
    "MONGODB_URL": "mongodb://localhost:27017/pregnancy_companion",
    "LLM_BASE_URL": "http://localhost:8080/v1",
    "LLM_API_KEY": "local",
    "LLM_MODEL": "",
    "TIMEZONE": "UTC",
    "LOG_LEVEL": "INFO",
    "DEFAULT_USER_ID": "default",
}


def _load_env() -> None:
    env_file = Path(os.getenv("ENV_FILE", str(_PROJECT_ROOT / ".env")))
    if env_file.exists():
        load_dotenv(dotenv_path=env_file, override=True)
    else:
        load_dotenv(override=True)


_load_env()


def get_env(var_name: str, default: Optional[str] = None) -> Optional[str]:
    """Environment value, else `default`, else the entry in ENV_DEFAULTS."""
    value = os.getenv(var_name)
    if value:
        return value
    if default is not None:
        return default
    return ENV_DEFAULTS.get(var_name) or None


def get_settings() -> Dict[str, Optional[str]]:
    """Every known setting resolved against ENV_DEFAULTS."""
    return {name: get_env(name) for name in ENV_DEFAULTS}
