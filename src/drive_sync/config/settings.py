"""Application configuration settings."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class GoogleDriveSettings(BaseSettings):
    """Google Drive API configuration."""

    credentials_path: Optional[str] = Field(default=None)
    application_name: str = Field(default="Drive Sync")
    parent_folder: str = Field(default="appDataFolder")

    class Config:
        env_prefix = "GOOGLE_"


class LocalSettings(BaseSettings):
    """Local sync root configuration."""

    sync_root: Optional[str] = Field(default=None)
    download_dir: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "LOCAL_"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file_path: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "LOG_"


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="Drive Sync")
    version: str = Field(default="1.0.0")

    # Sub-settings
    google_drive: GoogleDriveSettings = GoogleDriveSettings()
    local: LocalSettings = LocalSettings()
    logging: LoggingSettings = LoggingSettings()

    class Config:
        env_prefix = "APP_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = AppSettings()


def get_settings() -> AppSettings:
    """Get application settings."""
    return settings
