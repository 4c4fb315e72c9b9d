"""Application configuration."""

import os

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MAX_CACHE_TTL_SECONDS = 3600


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    open_food_facts_base_url: str = "https://world.openfoodfacts.org"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    search_default_limit: int = 20
    search_max_limit: int = 50
    local_sufficiency_ratio: float = 0.8
    external_timeout_seconds: float = 3.0
    external_page_size: int = 20
    cache_ttl_seconds: int = 300
    debounce_delay_seconds: float = 0.3
    fuzzy_match_threshold: float = 0.4
    fuzzy_accept_threshold: float = 0.5
    quality_high_threshold: int = 8
    quality_medium_threshold: int = 4
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _check_cache_ttl(cls, value: int) -> int:
        return validate_cache_ttl(value)

    @field_validator("debounce_delay_seconds", "external_timeout_seconds")
    @classmethod
    def _check_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @property
    def supabase_enabled(self) -> bool:
        """Return True when a Supabase record store is configured."""
        return bool(self.supabase_url and self.supabase_service_key)


def validate_cache_ttl(ttl_seconds: int) -> int:
    """Ensure a cache TTL lies within 1 second and 60 minutes."""
    if ttl_seconds <= 0 or ttl_seconds > MAX_CACHE_TTL_SECONDS:
        raise ValueError(
            f"cache TTL must be between 1 and {MAX_CACHE_TTL_SECONDS} seconds"
        )
    return ttl_seconds


def resolve_limit(requested: int | None, default: int, maximum: int) -> int:
    """Clamp a caller-requested result limit to a sane range."""
    if requested is None:
        return default
    if requested < 1:
        return 1
    return min(requested, maximum)
