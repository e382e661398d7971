"""
Restbase - Configuration and settings.

RestbaseSettings carries only what the adapter needs.
Application-specific settings live in consumer packages (e.g., edutrail.config).
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RestbaseSettings(BaseSettings):
    """
    Adapter settings.

    api_base may be relative ("/api") or absolute ("https://host/api").
    Relative bases are resolved against api_origin.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Backend
    api_base: str = Field(
        default="/api",
        validation_alias=AliasChoices("api_base", "API_BASE", "VITE_API_BASE"),
    )
    api_origin: str = "http://localhost:8000"

    # None disables the deadline (a hung request then hangs the caller)
    request_timeout: float | None = 30.0

    # Anti-forgery
    xsrf_cookie_name: str = "XSRF-TOKEN"
    xsrf_header_name: str = "X-XSRF-TOKEN"

    # Multipart updates are sent as POST + this field
    method_override_field: str = "_method"

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def normalized_api_base(self) -> str:
        """api_base without a trailing slash."""
        return self.api_base.rstrip("/")

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache
def get_settings() -> RestbaseSettings:
    """Get cached settings instance."""
    return RestbaseSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: RestbaseSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
