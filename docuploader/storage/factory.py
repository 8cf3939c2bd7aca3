"""
Storage Backend Factory

Creates the storage backend selected by configuration.

Author: DocUploader Contributors
Date: 2025
"""

import logging

from ..core.config_manager import StorageBackendType, StorageConfig
from ..exceptions import ConfigurationError
from .interface import StorageBackend
from .memory_backend import InMemoryBlobBackend

logger = logging.getLogger(__name__)


def create_storage_backend(config: StorageConfig) -> StorageBackend:
    """
    Factory function to create storage backend based on configuration.

    Args:
        config: Storage configuration

    Returns:
        Storage backend instance

    Raises:
        ConfigurationError: If the Azure connection string is missing or
            malformed, or the backend type is unknown

    Example:
        ```python
        config = StorageConfig(backend="memory")
        storage = create_storage_backend(config)
        ```
    """
    backend = StorageBackendType(config.backend)

    if backend == StorageBackendType.MEMORY:
        logger.info("Using in-memory blob storage backend")
        return InMemoryBlobBackend(account_url=config.account_url)

    elif backend == StorageBackendType.AZURE:
        if not config.connection_string:
            raise ConfigurationError("Azure Storage connection string not found")

        # Imported here so the memory backend works without the Azure SDK loaded
        from .azure_backend import AzureBlobBackend

        try:
            storage = AzureBlobBackend.from_connection_string(config.connection_string)
        except ValueError as e:
            raise ConfigurationError(f"Invalid Azure Storage connection string: {e}") from e

        logger.info(f"Using Azure Blob Storage backend (account={storage.account_name})")
        return storage

    else:
        raise ConfigurationError(
            f"Unknown storage backend: {config.backend}. "
            f"Supported backends: {[t.value for t in StorageBackendType]}"
        )
