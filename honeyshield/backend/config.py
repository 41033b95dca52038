"""
backend/config.py

Application configuration via Pydantic Settings.
All values can be overridden with environment variables or a .env file.

Quick start — create a .env file in your project root:
    APP_ENV=production
    DATABASE_URL=sqlite:///data/honeyshield.db
    OPENAI_API_KEY=sk-...
    API_PORT=5000
"""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Process
    APP_ENV: str = "development"
    """One of: 'development' | 'production'."""

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Storage: "sqlite:///<path>" or "memory://"
    DATABASE_URL: str = "sqlite:///data/honeyshield.db"

    # Remote analysis (OpenAI-compatible chat completions)
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o"
    LLM_MIN_INTERVAL_SECONDS: float = 2.0
    LLM_QUOTA_COOLDOWN_SECONDS: float = 300.0
    LLM_TIMEOUT_SECONDS: float = 15.0

    # Simulated live feed
    DEMO_RANDOM_PATTERNS: bool = True
    """Enables the random 'new pattern' flag and random pattern injection."""
    RANDOM_SEED: int | None = None
    SEED_ON_STARTUP: bool = True
    LOG_INTERVAL_MIN_SECONDS: float = 30.0
    LOG_INTERVAL_MAX_SECONDS: float = 60.0
    PATTERN_INTERVAL_MIN_SECONDS: float = 120.0
    PATTERN_INTERVAL_MAX_SECONDS: float = 180.0
    ANOMALY_INTERVAL_SECONDS: float = 300.0
    ANOMALY_BATCH_SIZE: int = 20

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_origins(cls, v):
        if isinstance(v, str):
            import json as _json
            v = v.strip()
            if v.startswith("["):
                try:
                    return _json.loads(v)
                except ValueError:
                    pass
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("OPENAI_API_KEY", mode="before")
    @classmethod
    def blank_key_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"


settings = Settings()
