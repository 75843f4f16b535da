"""
Test Suite for Settings
"""

from src.utils.config import Settings


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MAX_KEYWORDS", raising=False)
        settings = Settings(_env_file=None)

        assert settings.MAX_KEYWORDS == 15
        assert settings.KEYWORD_BATCH_SIZE == 5
        assert settings.MAX_RETRY_ATTEMPTS == 3

    def test_reads_environment_case_insensitively(self, monkeypatch):
        monkeypatch.setenv("keyword_batch_size", "7")
        monkeypatch.setenv("GOOGLE_SEARCH_ENGINE_ID", "cx-123")

        settings = Settings(_env_file=None)

        assert settings.KEYWORD_BATCH_SIZE == 7
        assert settings.GOOGLE_SEARCH_ENGINE_ID == "cx-123"

    def test_ignores_unknown_env_file_entries(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("MAX_KEYWORDS=9\nUNRELATED_SECRET=x\n", encoding="utf-8")

        settings = Settings(_env_file=str(env_file))

        assert settings.MAX_KEYWORDS == 9
        assert not hasattr(settings, "UNRELATED_SECRET")

    def test_configured_through_model_config(self):
        assert Settings.model_config["extra"] == "ignore"
        assert Settings.model_config["case_sensitive"] is False
        assert Settings.model_config["env_file"] == ".env"
