"""
Shared fixtures for DocUploader tests.
"""

import pytest
from fastapi.testclient import TestClient

from docuploader.app import create_app
from docuploader.core.config_manager import UploaderConfig
from docuploader.storage.memory_backend import InMemoryBlobBackend

CONFIG_ENV_VARS = [
    "AZURE_STORAGE_CONNECTION_STRING",
    "DOCUPLOADER_HOST",
    "DOCUPLOADER_PORT",
    "PORT",
    "DOCUPLOADER_CLIENT_URL",
    "CLIENT_URL",
    "DOCUPLOADER_ENV",
    "DOCUPLOADER_STORAGE_BACKEND",
    "DOCUPLOADER_MAX_UPLOAD_SIZE",
    "DOCUPLOADER_LOG_LEVEL",
    "DOCUPLOADER_LOG_FORMAT",
    "DOCUPLOADER_LOG_FILE",
    "DOCUPLOADER_CONFIG",
    "DOCUPLOADER_API_URL",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the host environment out of configuration loading."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory_config():
    """Configuration selecting the in-memory backend."""
    return UploaderConfig(storage={"backend": "memory"})


@pytest.fixture
def storage():
    """Empty in-memory storage backend."""
    return InMemoryBlobBackend(account_url="http://testserver/storage")


@pytest.fixture
def app(memory_config, storage):
    """Application wired to the in-memory backend."""
    return create_app(memory_config, storage=storage)


@pytest.fixture
def client(app):
    """Test client for the application."""
    return TestClient(app)
