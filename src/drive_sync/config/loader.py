"""Configuration loader for JSON/YAML files and environment variables."""

import os
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Union

from pydantic import ValidationError

from .schema import SyncConfig
from .settings import get_settings
from ..utils.logging import get_logger


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


# Environment variable -> SyncConfig field
ENV_OVERRIDES = {
    "DRIVE_SYNC_SYNC_ROOT": "sync_root",
    "DRIVE_SYNC_DOWNLOAD_DIR": "download_dir",
    "DRIVE_SYNC_PARENT_FOLDER": "parent_folder",
    "DRIVE_SYNC_CREDENTIALS_PATH": "credentials_path",
    "DRIVE_SYNC_LOG_LEVEL": "log_level",
    "DRIVE_SYNC_LOG_FORMAT": "log_format",
    "DRIVE_SYNC_LOG_FILE": "log_file",
}

INT_ENV_OVERRIDES = {
    "DRIVE_SYNC_MAX_RETRIES": "max_retries",
}


class ConfigLoader:
    """Loads and validates sync configuration from various sources."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def load_from_file(self, file_path: Union[str, Path]) -> SyncConfig:
        """Load configuration from JSON or YAML file.

        Args:
            file_path: Path to configuration file

        Returns:
            Validated SyncConfig object

        Raises:
            ConfigurationError: If file cannot be loaded or validated
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        self.logger.info("Loading configuration from file", file_path=str(file_path))

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                if file_path.suffix.lower() in ['.yaml', '.yml']:
                    data = yaml.safe_load(f) or {}
                elif file_path.suffix.lower() == '.json':
                    data = json.load(f)
                else:
                    raise ConfigurationError(f"Unsupported file format: {file_path.suffix}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML format: {e}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON format: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {file_path}")

        return self.load_from_dict(data)

    def load_from_dict(self, data: Dict[str, Any], apply_env: bool = True) -> SyncConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration data as dictionary
            apply_env: Whether DRIVE_SYNC_* environment variables override the data

        Returns:
            Validated SyncConfig object
        """
        data = dict(data)
        if apply_env:
            data = self._apply_env_overrides(data)

        try:
            config = SyncConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

        self.logger.info(
            "Configuration loaded",
            sync_root=str(config.sync_root),
            parent_folder=config.parent_folder
        )

        return config

    def load_from_settings(self, **overrides: Any) -> SyncConfig:
        """Build configuration from application settings (environment / .env)."""
        settings = get_settings()

        data: Dict[str, Any] = {
            "parent_folder": settings.google_drive.parent_folder,
            "application_name": settings.google_drive.application_name,
            "log_level": settings.logging.level,
            "log_format": settings.logging.format,
        }
        if settings.local.sync_root:
            data["sync_root"] = settings.local.sync_root
        if settings.local.download_dir:
            data["download_dir"] = settings.local.download_dir
        if settings.google_drive.credentials_path:
            data["credentials_path"] = settings.google_drive.credentials_path
        if settings.logging.file_path:
            data["log_file"] = settings.logging.file_path

        data = self._apply_env_overrides(data)
        data.update({k: v for k, v in overrides.items() if v is not None})

        if "sync_root" not in data:
            raise ConfigurationError("sync_root must be set")

        return self.load_from_dict(data, apply_env=False)

    def apply_overrides(self, config: SyncConfig, **overrides: Any) -> SyncConfig:
        """Return a re-validated copy of config with the non-None overrides applied."""
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if not overrides:
            return config

        data = config.dict()
        # download_dir follows a new sync_root unless it was set explicitly
        if "sync_root" in overrides and "download_dir" not in overrides and data["download_dir"] == data["sync_root"]:
            data["download_dir"] = None

        return self.load_from_dict({**data, **overrides}, apply_env=False)

    def save_to_file(self, config: SyncConfig, file_path: Union[str, Path], format: str = 'yaml'):
        """Save configuration to file.

        Args:
            config: Configuration to save
            file_path: Output file path
            format: Output format ('yaml' or 'json')
        """
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            key: str(value) if isinstance(value, Path) else value
            for key, value in config.dict().items()
        }

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                if format.lower() == 'yaml':
                    yaml.dump(data, f, default_flow_style=False, indent=2, allow_unicode=True)
                elif format.lower() == 'json':
                    json.dump(data, f, indent=2)
                else:
                    raise ConfigurationError(f"Unsupported format: {format}")
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}")

        self.logger.info("Configuration saved successfully", file_path=str(file_path))

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration data.

        Environment variables use the format: DRIVE_SYNC_<KEY>
        For example: DRIVE_SYNC_SYNC_ROOT, DRIVE_SYNC_LOG_LEVEL
        """
        env_overrides: Dict[str, Any] = {}

        for env_name, field_name in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                env_overrides[field_name] = value

        for env_name, field_name in INT_ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                try:
                    env_overrides[field_name] = int(value)
                except ValueError:
                    self.logger.warning("Invalid integer environment override, ignoring", variable=env_name)

        if env_overrides:
            self.logger.info("Applied environment variable overrides", overrides=list(env_overrides.keys()))
            data = {**data, **env_overrides}

        return data


def load_config_from_env(**overrides: Any) -> SyncConfig:
    """Load configuration from environment variables and default files.

    Looks for configuration files in this order:
    1. DRIVE_SYNC_CONFIG_FILE environment variable
    2. ./config/drive_sync.yaml (.yml, .json)
    3. ./drive_sync.yaml (.yml, .json)

    If no file is found, configuration is built from application settings.
    Keyword overrides that are not None take precedence over file values.
    """
    loader = ConfigLoader()
    logger = get_logger("load_config_from_env")

    config_file = os.getenv('DRIVE_SYNC_CONFIG_FILE')
    if config_file:
        if os.path.exists(config_file):
            return loader.apply_overrides(loader.load_from_file(config_file), **overrides)
        logger.warning("Specified config file not found", file=config_file)

    possible_files = [
        './config/drive_sync.yaml',
        './config/drive_sync.yml',
        './config/drive_sync.json',
        './drive_sync.yaml',
        './drive_sync.yml',
        './drive_sync.json'
    ]

    for file_path in possible_files:
        if os.path.exists(file_path):
            logger.info("Found configuration file", file=file_path)
            return loader.apply_overrides(loader.load_from_file(file_path), **overrides)

    logger.info("No configuration file found, using settings")
    return loader.load_from_settings(**overrides)

