"""Configuration schema for a sync pass."""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, validator


APP_DATA_FOLDER = "appDataFolder"


class SyncConfig(BaseModel):
    """Validated configuration for one local directory / remote folder pair."""

    # Local side
    sync_root: Path = Field(..., description="Directory whose files are mirrored to the remote folder")
    download_dir: Optional[Path] = Field(None, description="Directory downloaded files are written to (defaults to sync_root)")

    # Remote side
    parent_folder: str = Field(default=APP_DATA_FOLDER, description="Remote folder id, or appDataFolder")
    application_name: str = Field(default="Drive Sync", description="Application name reported to the Drive API")
    credentials_path: Optional[str] = Field(None, description="Service account key file")

    # Whole-pass retry, only applied when the snapshot could not be taken
    max_retries: int = Field(default=0, description="Repeats of a pass that failed before any file action")
    retry_delay_seconds: float = Field(default=5.0, description="Delay between whole-pass retries")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (json, console)")
    log_file: Optional[str] = Field(None, description="Optional rotating log file")

    @validator('sync_root')
    def validate_sync_root(cls, v):
        if not str(v).strip():
            raise ValueError("sync_root must not be empty")
        return v

    @validator('download_dir', always=True)
    def default_download_dir(cls, v, values):
        if v is None:
            return values.get('sync_root')
        return v

    @validator('parent_folder')
    def validate_parent_folder(cls, v):
        if not v or not v.strip():
            raise ValueError("parent_folder must not be empty")
        return v.strip()

    @validator('max_retries')
    def validate_max_retries(cls, v):
        if v < 0:
            raise ValueError("max_retries must be zero or positive")
        return v

    @validator('retry_delay_seconds')
    def validate_retry_delay(cls, v):
        if v < 0:
            raise ValueError("retry_delay_seconds must be zero or positive")
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        if v.lower() not in ('json', 'console'):
            raise ValueError("Log format must be 'json' or 'console'")
        return v.lower()

    @property
    def uses_app_data_folder(self) -> bool:
        """Whether the remote side is the app-private Drive space."""
        return self.parent_folder == APP_DATA_FOLDER
