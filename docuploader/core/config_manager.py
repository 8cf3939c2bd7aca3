"""
Configuration management for DocUploader.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_SIZE = 100 * 1024 * 1024

DEFAULT_ALLOWED_CONTENT_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
]


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class RuntimeMode(str, Enum):
    """Runtime mode flag."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class StorageBackendType(str, Enum):
    """Supported storage backend types."""
    AZURE = "azure"
    MEMORY = "memory"


class PublicAccessLevel(str, Enum):
    """Container public access levels."""
    PRIVATE = "private"
    BLOB = "blob"
    CONTAINER = "container"


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    host: str = "0.0.0.0"
    port: int = Field(default=5000, ge=1, le=65535)
    allowed_origin: str = Field(
        default="http://localhost:3000",
        description="Browser origin allowed by CORS"
    )
    mode: RuntimeMode = RuntimeMode.DEVELOPMENT


class StorageConfig(BaseModel):
    """Storage backend configuration."""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    backend: StorageBackendType = StorageBackendType.AZURE
    connection_string: Optional[str] = Field(
        default=None,
        description="Azure Storage connection string"
    )
    public_access: PublicAccessLevel = Field(
        default=PublicAccessLevel.BLOB,
        description="Access level applied to containers this service creates"
    )
    account_url: str = Field(
        default="http://127.0.0.1:5000/storage",
        description="Base URL used for blob URLs by the in-memory backend"
    )


class UploadConfig(BaseModel):
    """Upload validation configuration."""
    max_size_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_SIZE, gt=0)
    allowed_content_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_CONTENT_TYPES)
    )

    @field_validator("allowed_content_types")
    @classmethod
    def normalize_content_types(cls, v: List[str]) -> List[str]:
        """Lowercase and strip MIME types."""
        return [t.strip().lower() for t in v if t.strip()]


class LoggingConfig(BaseModel):
    """Logging configuration."""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    level: LogLevel = LogLevel.INFO
    format: str = "json"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'docuploader.api': 'DEBUG'}"
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Only json and text formatters exist."""
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v


class UploaderConfig(BaseModel):
    """Main DocUploader configuration schema."""

    version: str = Field(default="0.1.0", description="Configuration version")

    server: ServerConfig = Field(default_factory=ServerConfig)

    storage: StorageConfig = Field(default_factory=StorageConfig)

    uploads: UploadConfig = Field(default_factory=UploadConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

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
    Manages DocUploader configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (DOCUPLOADER_*, AZURE_STORAGE_CONNECTION_STRING)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[UploaderConfig] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> UploaderConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated UploaderConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading DocUploader configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.info(f"Applied {len(cli_overrides)} CLI argument overrides")

        try:
            self._config = UploaderConfig(**config_dict)
            logger.info("Configuration validated successfully")
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

        # Server configuration
        if host := os.getenv("DOCUPLOADER_HOST"):
            config.setdefault("server", {})["host"] = host
        if port := os.getenv("DOCUPLOADER_PORT") or os.getenv("PORT"):
            config.setdefault("server", {})["port"] = int(port)
        if origin := os.getenv("DOCUPLOADER_CLIENT_URL") or os.getenv("CLIENT_URL"):
            config.setdefault("server", {})["allowed_origin"] = origin
        if mode := os.getenv("DOCUPLOADER_ENV"):
            config.setdefault("server", {})["mode"] = mode.lower()

        # Storage configuration
        if connection_string := os.getenv("AZURE_STORAGE_CONNECTION_STRING"):
            config.setdefault("storage", {})["connection_string"] = connection_string
        if backend := os.getenv("DOCUPLOADER_STORAGE_BACKEND"):
            config.setdefault("storage", {})["backend"] = backend.lower()

        # Upload configuration
        if max_size := os.getenv("DOCUPLOADER_MAX_UPLOAD_SIZE"):
            config.setdefault("uploads", {})["max_size_bytes"] = int(max_size)

        # Logging configuration
        if log_level := os.getenv("DOCUPLOADER_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_format := os.getenv("DOCUPLOADER_LOG_FORMAT"):
            config.setdefault("logging", {})["format"] = log_format.lower()
        if log_file := os.getenv("DOCUPLOADER_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

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
        """Log the loaded configuration (with sensitive data redacted)."""
        if not self._config:
            return

        config_dict = self._config.model_dump()

        if config_dict["storage"].get("connection_string"):
            config_dict["storage"]["connection_string"] = "***REDACTED***"

        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> UploaderConfig:
        """
        Get the loaded configuration.

        Returns:
            UploaderConfig instance

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config
