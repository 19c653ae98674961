"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    supabase_storage_bucket: str = "gift-media"
    stripe_secret_key: str
    stripe_base_url: str = "https://api.stripe.com/v1"
    currency: str = "usd"
    public_base_url: str = "https://unboxme.app"
    max_cards: int = 7
    max_unlock_delay_days: int = 365
    max_upload_bytes: int = 10 * 1024 * 1024
    draft_ttl_seconds: int = 24 * 60 * 60
    cors_allowed_origins: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Parse CORS origins from env; ``*`` allows any origin."""
    if raw is None:
        return []
    cleaned = raw.strip()
    if not cleaned:
        return []
    if cleaned == "*":
        return ["*"]
    origins: list[str] = []
    for chunk in cleaned.split(","):
        value = chunk.strip().rstrip("/")
        if value and value not in origins:
            origins.append(value)
    return origins
