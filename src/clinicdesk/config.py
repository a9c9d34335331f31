"""
ClinicDesk Configuration Module

Centralized configuration management using Pydantic Settings.
Supports environment variables and .env files.
"""

from datetime import datetime
from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLINICDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_json: bool = True

    # IANA zone used for "now"; empty means the system local zone
    timezone: str = ""

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000


class BackendSettings(BaseSettings):
    """Clinic backend (appointments and payments service) settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLINIC_BACKEND_",
        env_file=".env",
        extra="ignore",
    )

    base_url: str = "http://localhost:8080/api"
    timeout_seconds: float = 10.0
    api_token: SecretStr | None = None

    # Use in-memory collaborators instead of the HTTP backend
    use_mock: bool = True

    @property
    def auth_headers(self) -> dict[str, str]:
        """Authorization header for backend requests, if a token is set."""
        if self.api_token is None:
            return {}
        return {"Authorization": f"Bearer {self.api_token.get_secret_value()}"}


class AuditSettings(BaseSettings):
    """Billing audit trail settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLINIC_AUDIT_",
        env_file=".env",
        extra="ignore",
    )

    default_user: str = Field(default="system", description="Actor recorded when no user is known")


class Settings:
    """
    Aggregated settings container.

    Usage:
        from clinicdesk.config import get_settings

        settings = get_settings()
        print(settings.app.api_port)
        print(settings.backend.base_url)
    """

    def __init__(self):
        self.app = AppSettings()
        self.backend = BackendSettings()
        self.audit = AuditSettings()

    @property
    def is_development(self) -> bool:
        return self.app.env == "development"

    @property
    def is_production(self) -> bool:
        return self.app.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: The application settings
    """
    return Settings()


def local_now(settings: Settings | None = None) -> datetime:
    """Current time in the configured zone (naive local time when unset)."""
    settings = settings or get_settings()
    if settings.app.timezone:
        return datetime.now(ZoneInfo(settings.app.timezone))
    return datetime.now()
