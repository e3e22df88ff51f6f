"""Configuration package."""

from visionboard.config.settings import (
    AppSettings,
    GeminiSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from visionboard.config.credentials import (
    ApiKeyResolver,
    mask_credential,
)

__all__ = [
    "ApiKeyResolver",
    "AppSettings",
    "GeminiSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "mask_credential",
    "validate_all_settings",
]
