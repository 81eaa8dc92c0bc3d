"""Dashboard configuration loaded from environment variables."""

from __future__ import annotations

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Remote catalog API
    API_ENDPOINT: str = "http://localhost:8000"
    REQUEST_TIMEOUT_SECONDS: float = 15.0

    # Alerts
    ALERT_DISMISS_SECONDS: float = 5.0

    # Mock-data fallback, per collection
    FALLBACK_SPECIALISTS: bool = True
    FALLBACK_COUNTRIES: bool = False
    FALLBACK_VISA_TYPES: bool = False

    LOG_LEVEL: str = "INFO"

    # Dev API server
    CORS_ORIGINS: List[str] = ["http://localhost:8501", "http://127.0.0.1:8501"]


settings = Settings()
