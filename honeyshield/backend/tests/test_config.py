"""
tests/test_config.py

Tests for config.py — Pydantic Settings validation and defaults.
"""

from __future__ import annotations

from honeyshield.backend.config import Settings


class TestSettingsDefaults:

    def test_default_database_url(self):
        assert Settings(_env_file=None).DATABASE_URL == "sqlite:///data/honeyshield.db"

    def test_default_api(self):
        s = Settings(_env_file=None)
        assert s.API_HOST == "0.0.0.0"
        assert s.API_PORT == 5000

    def test_remote_analysis_off_without_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        s = Settings(_env_file=None)
        assert s.OPENAI_API_KEY is None
        assert s.OPENAI_MODEL == "gpt-4o"

    def test_default_gatekeeper_timings(self):
        s = Settings(_env_file=None)
        assert s.LLM_MIN_INTERVAL_SECONDS == 2.0
        assert s.LLM_QUOTA_COOLDOWN_SECONDS == 300.0
        assert s.LLM_TIMEOUT_SECONDS == 15.0

    def test_default_feed_intervals(self):
        s = Settings(_env_file=None)
        assert (s.LOG_INTERVAL_MIN_SECONDS, s.LOG_INTERVAL_MAX_SECONDS) == (30.0, 60.0)
        assert (s.PATTERN_INTERVAL_MIN_SECONDS, s.PATTERN_INTERVAL_MAX_SECONDS) == (120.0, 180.0)
        assert s.ANOMALY_INTERVAL_SECONDS == 300.0
        assert s.ANOMALY_BATCH_SIZE == 20
        assert s.DEMO_RANDOM_PATTERNS is True

    def test_not_production_by_default(self):
        assert Settings(_env_file=None).is_production is False


class TestSettingsOverrides:

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("API_PORT", "8080")
        monkeypatch.setenv("DATABASE_URL", "memory://")
        monkeypatch.setenv("DEMO_RANDOM_PATTERNS", "false")
        s = Settings(_env_file=None)
        assert s.API_PORT == 8080
        assert s.DATABASE_URL == "memory://"
        assert s.DEMO_RANDOM_PATTERNS is False

    def test_blank_api_key_treated_as_missing(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "   ")
        assert Settings(_env_file=None).OPENAI_API_KEY is None

    def test_cors_origins_json_list(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://dash.example.com"]')
        assert Settings(_env_file=None).CORS_ORIGINS == ["https://dash.example.com"]

    def test_cors_origins_from_kwargs_string(self):
        s = Settings(_env_file=None, CORS_ORIGINS="https://a.example, https://b.example")
        assert s.CORS_ORIGINS == ["https://a.example", "https://b.example"]

    def test_production_flag(self):
        assert Settings(_env_file=None, APP_ENV="Production").is_production is True
