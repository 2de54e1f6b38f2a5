"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    backend_base_url: str = "http://localhost:5000/api"
    request_timeout_seconds: float = 30.0
    history_backend: str = "file"
    history_dir: str = ".voice_to_code"
    history_snapshot_name: str = "voiceCodeHistory"
    history_capacity: int = Field(5, ge=1)
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    stage_interval_seconds: float = 0.8
    stage_clear_delay_seconds: float = 2.0
    speech_enabled: bool = True
    speech_language: str = "en-US"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_base_url(raw: str) -> str:
    """Strip whitespace and trailing slashes from a service base URL."""
    cleaned = raw.strip().rstrip("/")
    if not cleaned:
        raise ValueError("backend_base_url must not be empty")
    return cleaned
