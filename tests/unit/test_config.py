"""
Unit tests for settings loading.
"""
from pathlib import Path

from fitbot.config import Settings


class TestSettings:
    def test_env_names_are_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("openrouter_text_model", "vendor/tiny")
        monkeypatch.setenv("DATA_DIR", "/tmp/fitbot-data")

        settings = Settings(_env_file=None)

        assert settings.openrouter_text_model == "vendor/tiny"
        assert settings.data_dir == Path("/tmp/fitbot-data")

    def test_unknown_values_are_ignored(self):
        settings = Settings(_env_file=None, not_a_setting="x")

        assert not hasattr(settings, "not_a_setting")
        assert Settings.model_config["extra"] == "ignore"

    def test_vision_model_is_optional(self, monkeypatch):
        monkeypatch.delenv("OPENROUTER_VISION_MODEL", raising=False)

        settings = Settings(_env_file=None)

        assert settings.openrouter_vision_model is None
        assert settings.whatsapp_api_version == "v19.0"
