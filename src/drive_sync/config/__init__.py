"""Configuration package for drive sync."""

from .settings import (
    GoogleDriveSettings,
    LocalSettings,
    LoggingSettings,
    AppSettings,
    get_settings
)

from .schema import SyncConfig, APP_DATA_FOLDER

from .loader import (
    ConfigLoader,
    ConfigurationError,
    load_config_from_env
)

__all__ = [
    "GoogleDriveSettings",
    "LocalSettings",
    "LoggingSettings",
    "AppSettings",
    "get_settings",

    "SyncConfig",
    "APP_DATA_FOLDER",

    "ConfigLoader",
    "ConfigurationError",
    "load_config_from_env"
]
