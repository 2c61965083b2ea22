"""
Configuration management for QiniuSign.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator, ValidationError, ConfigDict

from qiniusign.auth.credential import Credential

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CredentialsConfig(BaseModel):
    """Access key pair used for signing."""
    access_key: Optional[str] = None
    secret_key: Optional[SecretStr] = None


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.WARNING
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'qiniusign.auth': 'DEBUG'}"
    )


class DownloadConfig(BaseModel):
    """Defaults for signed download URLs."""
    lifetime_seconds: int = Field(
        default=3600,
        gt=0,
        description="How long a signed download URL stays valid"
    )
    only_path: bool = Field(
        default=False,
        description="Sign only path and query instead of the full URL"
    )


class QiniuSignConfig(BaseModel):
    """Main QiniuSign configuration schema."""

    version: str = Field(default="0.1.0", description="Configuration version")

    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    download: DownloadConfig = Field(default_factory=DownloadConfig)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format x.y.z")
        for part in parts:
            if not part.isdigit():
                raise ValueError("Version components must be numeric")
        return v

    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages QiniuSign configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (QINIU_ACCESS_KEY, QINIU_SECRET_KEY, QINIUSIGN_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[QiniuSignConfig] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> QiniuSignConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated QiniuSignConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.debug("Loading QiniuSign configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            logger.debug(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.debug(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.debug(f"Applied {len(cli_overrides)} CLI argument overrides")

        try:
            self._config = QiniuSignConfig(**config_dict)
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        # Credentials use the same names as the official SDKs
        if access_key := os.getenv("QINIU_ACCESS_KEY"):
            config.setdefault("credentials", {})["access_key"] = access_key
        if secret_key := os.getenv("QINIU_SECRET_KEY"):
            config.setdefault("credentials", {})["secret_key"] = secret_key

        if log_level := os.getenv("QINIUSIGN_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv("QINIUSIGN_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        if lifetime := os.getenv("QINIUSIGN_DOWNLOAD_LIFETIME"):
            config.setdefault("download", {})["lifetime_seconds"] = int(lifetime)
        if only_path := os.getenv("QINIUSIGN_ONLY_PATH"):
            config.setdefault("download", {})["only_path"] = only_path.lower() in ['true', '1', 'yes']

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration; SecretStr keeps the secret key masked."""
        if not self._config:
            return

        config_dict = self._config.model_dump(mode="json")
        logger.debug(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> QiniuSignConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def credential(self) -> Credential:
        """
        Build a signing credential from the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
            ValueError: If the access key or secret key is missing
        """
        credentials = self.get_config().credentials
        if not credentials.access_key or credentials.secret_key is None:
            raise ValueError(
                "Access key and secret key are required "
                "(set QINIU_ACCESS_KEY / QINIU_SECRET_KEY or use a config file)"
            )
        return Credential(credentials.access_key, credentials.secret_key.get_secret_value())
