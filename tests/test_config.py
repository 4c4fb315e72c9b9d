"""Tests for configuration helpers."""

import pytest

from food_search.config import Settings, resolve_limit, validate_cache_ttl


def test_resolve_limit_defaults_and_clamps() -> None:
    assert resolve_limit(None, default=20, maximum=50) == 20
    assert resolve_limit(0, default=20, maximum=50) == 1
    assert resolve_limit(500, default=20, maximum=50) == 50
    assert resolve_limit(7, default=20, maximum=50) == 7


def test_validate_cache_ttl_bounds() -> None:
    assert validate_cache_ttl(1) == 1
    assert validate_cache_ttl(3600) == 3600
    with pytest.raises(ValueError):
        validate_cache_ttl(3601)


def test_settings_defaults(settings: Settings) -> None:
    assert settings.cache_ttl_seconds == 300
    assert settings.debounce_delay_seconds == 0.3
    assert settings.local_sufficiency_ratio == 0.8
    assert settings.external_timeout_seconds == 3.0
    assert settings.supabase_enabled is False


def test_settings_reject_invalid_values() -> None:
    with pytest.raises(ValueError):
        Settings(cache_ttl_seconds=7200)
    with pytest.raises(ValueError):
        Settings(debounce_delay_seconds=0)


def test_supabase_enabled_requires_url_and_key() -> None:
    configured = Settings(supabase_url="https://db.test", supabase_service_key="k")
    missing_key = Settings(supabase_url="https://db.test", supabase_service_key=None)

    assert configured.supabase_enabled
    assert not missing_key.supabase_enabled
