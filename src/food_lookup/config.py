"""Application configuration."""

import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    fatsecret_enabled: bool = True
    fatsecret_client_id: str = ""
    fatsecret_client_secret: str = ""
    fatsecret_base_url: str = "https://platform.fatsecret.com/rest/server.api"
    fatsecret_token_url: str = "https://oauth.fatsecret.com/connect/token"
    fatsecret_timeout_ms: int = 10000
    fatsecret_max_results: int = 20
    fatsecret_fallback_enabled: bool = True
    fatsecret_region: str | None = None
    fatsecret_language: str | None = None
    openfoodfacts_base_url: str = "https://world.openfoodfacts.org"
    openfoodfacts_timeout_ms: int = 8000
    translate_queries: bool = True
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


@dataclass(frozen=True)
class ConfigHealth:
    """Result of a configuration check that makes no API calls."""

    healthy: bool
    enabled: bool
    has_credentials: bool
    issues: list[str] = field(default_factory=list)
    checked_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


def has_fatsecret_credentials(settings: Settings) -> bool:
    """Return True when both FatSecret credentials are set."""
    return bool(settings.fatsecret_client_id and settings.fatsecret_client_secret)


def primary_source_enabled(settings: Settings) -> bool:
    """Return True when the FatSecret tier can be used."""
    if not settings.fatsecret_enabled:
        return False
    if not has_fatsecret_credentials(settings):
        _logger.error(
            "FatSecret credentials missing, disabling integration: "
            "has_client_id=%s has_client_secret=%s",
            bool(settings.fatsecret_client_id),
            bool(settings.fatsecret_client_secret),
        )
        return False
    return True


def config_health(settings: Settings) -> ConfigHealth:
    """Check the FatSecret configuration for problems."""
    issues: list[str] = []
    has_credentials = has_fatsecret_credentials(settings)
    if not settings.fatsecret_enabled:
        issues.append("FatSecret integration is disabled")
    elif not has_credentials:
        issues.append("FatSecret credentials are missing")
    if not 1000 <= settings.fatsecret_timeout_ms <= 30000:
        issues.append(
            f"Timeout {settings.fatsecret_timeout_ms}ms is outside 1000-30000ms"
        )
    if not 1 <= settings.fatsecret_max_results <= 100:
        issues.append(
            f"Max results {settings.fatsecret_max_results} is outside 1-100"
        )
    enabled = settings.fatsecret_enabled and has_credentials
    return ConfigHealth(
        healthy=enabled and not issues,
        enabled=enabled,
        has_credentials=has_credentials,
        issues=issues,
    )
