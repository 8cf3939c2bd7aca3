"""
Storage Backend Interface

Defines the abstract interface all storage backends must implement.

Author: DocUploader Contributors
Date: 2025
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from ..core.config_manager import PublicAccessLevel
from .models import BlobDownload, BlobInfo, ContainerInfo


class StorageBackend(ABC):
    """
    Abstract base class for blob storage backends.

    A backend is constructed once per process and shared by every request;
    implementations must not keep per-request state.

    **Error Handling**:
    - ContainerAlreadyExistsError, ContainerNotFoundError and
      BlobNotFoundError for the corresponding service conditions
    - StorageServiceError for transport or service failures, chained to the
      underlying SDK exception
    """

    @abstractmethod
    async def close(self) -> None:
        """Release network resources. Called once on application shutdown."""

    # ========== Container Operations ==========

    @abstractmethod
    async def list_containers(self) -> List[ContainerInfo]:
        """
        List all containers, ordered by name.

        Raises:
            StorageServiceError: If the service call fails
        """

    @abstractmethod
    async def create_container(self, name: str, public_access: PublicAccessLevel) -> None:
        """
        Create a container.

        Args:
            name: Container name (already validated)
            public_access: Access level for the new container

        Raises:
            ContainerAlreadyExistsError: If the container exists
            StorageServiceError: If the service call fails
        """

    @abstractmethod
    async def ensure_container(self, name: str, public_access: PublicAccessLevel) -> bool:
        """
        Create a container unless it already exists.

        Returns:
            True if the container was created by this call

        Raises:
            StorageServiceError: If the service call fails
        """

    # ========== Blob Operations ==========

    @abstractmethod
    async def list_blobs(self, container_name: str) -> List[BlobInfo]:
        """
        List blobs in a container with their metadata, ordered by name.

        Raises:
            ContainerNotFoundError: If the container does not exist
            StorageServiceError: If the service call fails
        """

    @abstractmethod
    async def upload_blob(
        self,
        container_name: str,
        blob_name: str,
        data: bytes,
        content_type: str,
        metadata: Dict[str, str],
    ) -> BlobInfo:
        """
        Store a block blob with content type and metadata tags.

        Raises:
            ContainerNotFoundError: If the container does not exist
            StorageServiceError: If the service call fails
        """

    @abstractmethod
    async def download_blob(self, container_name: str, blob_name: str) -> BlobDownload:
        """
        Open a blob for download.

        Raises:
            ContainerNotFoundError: If the container does not exist
            BlobNotFoundError: If the blob does not exist
            StorageServiceError: If the service call fails
        """

    @abstractmethod
    async def delete_blob(self, container_name: str, blob_name: str) -> None:
        """
        Delete a blob.

        Raises:
            ContainerNotFoundError: If the container does not exist
            BlobNotFoundError: If the blob does not exist
            StorageServiceError: If the service call fails
        """
