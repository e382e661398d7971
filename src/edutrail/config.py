"""
Edutrail - Configuration and settings.

EdutrailSettings extends RestbaseSettings with storage and image fields.
"""

from functools import lru_cache

from restbase.config import RestbaseSettings


class EdutrailSettings(RestbaseSettings):
    """
    Dashboard settings.

    Extends RestbaseSettings with the storage bucket and the image
    constraints checked before any upload.
    """

    # Storage
    storage_bucket: str = "edutrail"

    # Project images
    image_max_bytes: int = 2_000_000
    image_allowed_types: list[str] = ["image/png", "image/jpeg"]
    image_cache_control: str = "3600"


@lru_cache
def get_settings() -> EdutrailSettings:
    """Get cached settings instance."""
    return EdutrailSettings()


# Convenience singleton - lazy loaded
class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: EdutrailSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
