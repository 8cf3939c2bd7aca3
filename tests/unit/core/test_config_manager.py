"""
Tests for ConfigManager.
"""

import json
import logging
import os
import tempfile

import pytest
import yaml
from pydantic import ValidationError

from docuploader.core.config_manager import (
    DEFAULT_ALLOWED_CONTENT_TYPES,
    DEFAULT_MAX_UPLOAD_SIZE,
    ConfigManager,
    LogLevel,
    PublicAccessLevel,
    RuntimeMode,
    StorageBackendType,
    UploaderConfig,
)


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_defaults(self):
        """Test loading default configuration."""
        manager = ConfigManager()
        config = manager.load()

        assert config.version == "0.1.0"
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 5000
        assert config.server.allowed_origin == "http://localhost:3000"
        assert config.server.mode == RuntimeMode.DEVELOPMENT
        assert config.storage.backend == StorageBackendType.AZURE
        assert config.storage.public_access == PublicAccessLevel.BLOB
        assert config.storage.connection_string is None
        assert config.uploads.max_size_bytes == DEFAULT_MAX_UPLOAD_SIZE == 104857600
        assert config.uploads.allowed_content_types == DEFAULT_ALLOWED_CONTENT_TYPES
        assert config.logging.level == LogLevel.INFO

    def test_default_enum_fields_are_plain_values(self):
        """Test nested enum fields hold their string values, defaults included."""
        config = UploaderConfig()

        assert type(config.logging.level) is str
        assert config.logging.level == "INFO"
        assert config.storage.backend == "azure"
        assert config.server.mode == "development"

    def test_load_from_yaml_file(self):
        """Test loading configuration from YAML file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml_config = {
                "version": "1.0.0",
                "server": {"host": "127.0.0.1", "port": 9000},
                "storage": {"backend": "memory"},
                "logging": {"level": "DEBUG"},
            }
            yaml.dump(yaml_config, f)
            config_file = f.name

        try:
            manager = ConfigManager()
            config = manager.load(config_file=config_file)

            assert config.version == "1.0.0"
            assert config.server.host == "127.0.0.1"
            assert config.server.port == 9000
            assert config.storage.backend == StorageBackendType.MEMORY
            assert config.logging.level == LogLevel.DEBUG
        finally:
            os.unlink(config_file)

    def test_load_from_json_file(self):
        """Test loading configuration from JSON file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({"version": "2.0.0", "uploads": {"max_size_bytes": 1024}}, f)
            config_file = f.name

        try:
            config = ConfigManager().load(config_file=config_file)

            assert config.version == "2.0.0"
            assert config.uploads.max_size_bytes == 1024
        finally:
            os.unlink(config_file)

    def test_load_missing_file(self):
        """Test loading a configuration file that does not exist."""
        with pytest.raises(FileNotFoundError):
            ConfigManager().load(config_file="/nonexistent/docuploader.yaml")

    def test_load_unsupported_file_format(self, tmp_path):
        """Test loading a configuration file with an unknown extension."""
        config_file = tmp_path / "docuploader.toml"
        config_file.write_text("[server]\n")

        with pytest.raises(ValueError, match="Unsupported config file format"):
            ConfigManager().load(config_file=str(config_file))

    def test_load_from_env_variables(self, monkeypatch):
        """Test loading configuration from environment variables."""
        monkeypatch.setenv("DOCUPLOADER_HOST", "192.168.1.1")
        monkeypatch.setenv("DOCUPLOADER_PORT", "8080")
        monkeypatch.setenv("DOCUPLOADER_CLIENT_URL", "https://docs.example.com")
        monkeypatch.setenv("DOCUPLOADER_ENV", "Production")
        monkeypatch.setenv("DOCUPLOADER_STORAGE_BACKEND", "MEMORY")
        monkeypatch.setenv("DOCUPLOADER_MAX_UPLOAD_SIZE", "2048")
        monkeypatch.setenv("DOCUPLOADER_LOG_LEVEL", "warning")
        monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", "UseDevelopmentStorage=true")

        config = ConfigManager().load()

        assert config.server.host == "192.168.1.1"
        assert config.server.port == 8080
        assert config.server.allowed_origin == "https://docs.example.com"
        assert config.server.mode == RuntimeMode.PRODUCTION
        assert config.storage.backend == StorageBackendType.MEMORY
        assert config.storage.connection_string == "UseDevelopmentStorage=true"
        assert config.uploads.max_size_bytes == 2048
        assert config.logging.level == LogLevel.WARNING

    def test_legacy_env_fallbacks(self, monkeypatch):
        """Test PORT and CLIENT_URL are used when the prefixed variables are unset."""
        monkeypatch.setenv("PORT", "7000")
        monkeypatch.setenv("CLIENT_URL", "http://localhost:4000")

        config = ConfigManager().load()

        assert config.server.port == 7000
        assert config.server.allowed_origin == "http://localhost:4000"

    def test_prefixed_env_wins_over_legacy(self, monkeypatch):
        """Test DOCUPLOADER_PORT takes precedence over PORT."""
        monkeypatch.setenv("PORT", "7000")
        monkeypatch.setenv("DOCUPLOADER_PORT", "7001")

        assert ConfigManager().load().server.port == 7001

    def test_precedence_cli_over_env_over_file(self, tmp_path, monkeypatch):
        """Test CLI overrides beat environment, which beats the file."""
        config_file = tmp_path / "docuploader.yaml"
        config_file.write_text(yaml.dump({
            "server": {"host": "10.0.0.1", "port": 6000},
            "logging": {"level": "DEBUG"},
        }))
        monkeypatch.setenv("DOCUPLOADER_PORT", "6001")
        monkeypatch.setenv("DOCUPLOADER_LOG_LEVEL", "ERROR")

        config = ConfigManager().load(
            config_file=str(config_file),
            cli_overrides={"logging": {"level": "WARNING"}},
        )

        assert config.server.host == "10.0.0.1"
        assert config.server.port == 6001
        assert config.logging.level == LogLevel.WARNING

    def test_invalid_port(self):
        """Test validation rejects an out-of-range port."""
        with pytest.raises(ValidationError):
            ConfigManager().load(cli_overrides={"server": {"port": 70000}})

    def test_invalid_version(self):
        """Test validation rejects a malformed version."""
        with pytest.raises(ValidationError):
            ConfigManager().load(cli_overrides={"version": "1.0"})

    def test_invalid_log_format(self):
        """Test validation rejects unknown log formats."""
        with pytest.raises(ValidationError):
            ConfigManager().load(cli_overrides={"logging": {"format": "xml"}})

    def test_invalid_storage_backend(self):
        """Test validation rejects unknown storage backends."""
        with pytest.raises(ValidationError):
            ConfigManager().load(cli_overrides={"storage": {"backend": "s3"}})

    def test_allowed_content_types_normalized(self):
        """Test MIME types are lowercased and stripped."""
        config = ConfigManager().load(
            cli_overrides={"uploads": {"allowed_content_types": [" Application/PDF ", "", "text/plain"]}}
        )

        assert config.uploads.allowed_content_types == ["application/pdf", "text/plain"]

    def test_get_config_before_load(self):
        """Test get_config raises before load."""
        with pytest.raises(RuntimeError, match="Configuration not loaded"):
            ConfigManager().get_config()

    def test_get_config_after_load(self):
        """Test get_config returns the loaded configuration."""
        manager = ConfigManager()
        config = manager.load()

        assert manager.get_config() is config

    def test_connection_string_redacted_in_log(self, monkeypatch, caplog):
        """Test the active-configuration log line never carries the connection string."""
        secret = "DefaultEndpointsProtocol=https;AccountName=acct;AccountKey=c2VjcmV0a2V5"
        monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", secret)

        with caplog.at_level(logging.INFO, logger="docuploader.core.config_manager"):
            ConfigManager().load()

        assert "c2VjcmV0a2V5" not in caplog.text
        assert "***REDACTED***" in caplog.text
