"""
Tests for configuration, environment and response helpers.
"""

from core.config import DEFAULT_CONFIG, load_config
from core.env_loader import ENV_DEFAULTS, get_env, get_settings
from utils.helpers import average, find_first, format_number, make_response, truncate_text


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "missing.yaml")) == DEFAULT_CONFIG

    def test_partial_file_is_merged_over_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("cache:\n  max_memory_entries: 5\ntrackers:\n  mood:\n    enabled: false\n")

        config = load_config(str(path))

        assert config["cache"]["max_memory_entries"] == 5
        assert config["cache"]["max_age_days"] == 30
        assert config["trackers"]["mood"]["enabled"] is False

    def test_invalid_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("cache: [unclosed\n")

        assert load_config(str(path)) == DEFAULT_CONFIG

    def test_defaults_are_not_shared(self, tmp_path):
        config = load_config(str(tmp_path / "missing.yaml"))
        config["cache"]["max_age_days"] = 1

        assert DEFAULT_CONFIG["cache"]["max_age_days"] == 30


class TestEnv:
    def test_get_env_precedence(self, monkeypatch):
        monkeypatch.setenv("COMPANION_TEST_VAR", "value")
        monkeypatch.delenv("COMPANION_MISSING_VAR", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        assert get_env("COMPANION_TEST_VAR", "fallback") == "value"
        assert get_env("COMPANION_MISSING_VAR", "fallback") == "fallback"
        assert get_env("COMPANION_MISSING_VAR") is None
        assert get_env("LOG_LEVEL") == "INFO"

    def test_settings_fall_back_to_defaults(self, monkeypatch):
        monkeypatch.delenv("TIMEZONE", raising=False)
        monkeypatch.setenv("DEFAULT_USER_ID", "maya")

        settings = get_settings()

        assert set(settings) == set(ENV_DEFAULTS)
        assert settings["TIMEZONE"] == "UTC"
        assert settings["DEFAULT_USER_ID"] == "maya"


class TestHelpers:
    def test_make_response_defaults(self):
        response = make_response("hi", intent="mood", action="log", success=True)

        assert response == {
            "message": "hi", "intent": "mood", "action": "log",
            "requires_follow_up": False, "required_fields": [], "success": True,
        }

    def test_format_number(self):
        assert format_number(65.0) == "65"
        assert format_number(64.25) == "64.2"
        assert format_number(64.5) == "64.5"

    def test_average_ignores_missing(self):
        assert average([6, None, 8]) == 7.0
        assert average([]) is None

    def test_find_first_matches_whole_words(self):
        assert find_first("I feel sad today", ("sad", "happy")) == "sad"
        assert find_first("sadness", ("sad",)) is None

    def test_truncate_text(self):
        assert truncate_text("x" * 10, 5) == "xx..."
        assert truncate_text("short") == "short"
