"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    places_api_key: str
    places_base_url: str = "https://places.googleapis.com/v1"
    frontend_url: str = "http://localhost:5173"
    session_retention_hours: int = 24
    retention_sweep_interval_seconds: int = 300
    key_generation_attempts: int = 10
    candidate_cache_ttl_seconds: int = 600
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Parse a comma-separated CORS origin list."""
    if raw is None:
        return []
    cleaned = raw.strip()
    if cleaned == "*":
        return ["*"]
    return [origin.strip() for origin in cleaned.split(",") if origin.strip()]
