"""
Azure Blob Storage Backend

StorageBackend implementation over the async Azure Storage Blob SDK. SDK
exceptions are translated into the DocUploader exception hierarchy here so
nothing above this module sees ``azure.core`` types.

Author: DocUploader Contributors
Date: 2025
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, NoReturn, Optional

from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient

from ..core.config_manager import PublicAccessLevel
from ..exceptions import (
    BlobNotFoundError,
    ContainerAlreadyExistsError,
    ContainerNotFoundError,
    StorageServiceError,
)
from .interface import StorageBackend
from .models import BlobDownload, BlobInfo, ContainerInfo

logger = logging.getLogger(__name__)

CONTAINER_NOT_FOUND = "ContainerNotFound"
CONTAINER_ALREADY_EXISTS = "ContainerAlreadyExists"
BLOB_NOT_FOUND = "BlobNotFound"


def _sdk_public_access(level: PublicAccessLevel) -> Optional[str]:
    """Map an access level to the SDK's ``public_access`` argument."""
    level = PublicAccessLevel(level)
    if level is PublicAccessLevel.PRIVATE:
        return None
    return level.value


class AzureBlobBackend(StorageBackend):
    """
    Storage backend backed by an Azure Storage account.

    Holds one ``BlobServiceClient`` for the process lifetime; the SDK pools
    HTTP connections underneath it.
    """

    def __init__(self, service_client: BlobServiceClient):
        self._service = service_client

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "AzureBlobBackend":
        """
        Build a backend from an account connection string.

        Raises:
            ValueError: If the connection string is malformed
        """
        return cls(BlobServiceClient.from_connection_string(connection_string))

    @property
    def account_name(self) -> Optional[str]:
        return getattr(self._service, "account_name", None)

    async def close(self) -> None:
        await self._service.close()
        logger.info("Closed Azure Blob Storage client")

    def _raise_translated(
        self,
        error: AzureError,
        operation: str,
        container_name: Optional[str] = None,
        blob_name: Optional[str] = None,
    ) -> NoReturn:
        """Re-raise an SDK error as the matching DocUploader exception."""
        if isinstance(error, ResourceNotFoundError):
            error_code = getattr(error, "error_code", None)
            if blob_name is not None and error_code != CONTAINER_NOT_FOUND:
                raise BlobNotFoundError(container_name or "", blob_name) from error
            if container_name is not None:
                raise ContainerNotFoundError(container_name) from error
        if (
            isinstance(error, ResourceExistsError)
            and getattr(error, "error_code", None) == CONTAINER_ALREADY_EXISTS
            and container_name is not None
            and blob_name is None
        ):
            raise ContainerAlreadyExistsError(container_name) from error

        logger.error(
            f"Storage operation '{operation}' failed: {type(error).__name__}: {error}",
            exc_info=True,
        )
        raise StorageServiceError(operation) from error

    # ========== Container Operations ==========

    async def list_containers(self) -> List[ContainerInfo]:
        containers: List[ContainerInfo] = []
        try:
            async for props in self._service.list_containers():
                containers.append(
                    ContainerInfo(name=props.name, last_modified=props.last_modified)
                )
        except AzureError as e:
            self._raise_translated(e, "list_containers")
        return sorted(containers, key=lambda c: c.name)

    async def create_container(self, name: str, public_access: PublicAccessLevel) -> None:
        container = self._service.get_container_client(name)
        try:
            await container.create_container(public_access=_sdk_public_access(public_access))
        except AzureError as e:
            self._raise_translated(e, "create_container", container_name=name)
        logger.info(f"Created container '{name}'")

    async def ensure_container(self, name: str, public_access: PublicAccessLevel) -> bool:
        try:
            await self.create_container(name, public_access)
        except ContainerAlreadyExistsError:
            return False
        return True

    # ========== Blob Operations ==========

    async def list_blobs(self, container_name: str) -> List[BlobInfo]:
        container = self._service.get_container_client(container_name)
        blobs: List[BlobInfo] = []
        try:
            async for props in container.list_blobs(include=["metadata"]):
                content_settings = props.content_settings
                blobs.append(BlobInfo(
                    name=props.name,
                    container_name=container_name,
                    size=props.size or 0,
                    content_type=(
                        content_settings.content_type
                        if content_settings and content_settings.content_type
                        else "application/octet-stream"
                    ),
                    last_modified=props.last_modified,
                    url=container.get_blob_client(props.name).url,
                    metadata=dict(props.metadata or {}),
                ))
        except AzureError as e:
            self._raise_translated(e, "list_blobs", container_name=container_name)
        return blobs

    async def upload_blob(
        self,
        container_name: str,
        blob_name: str,
        data: bytes,
        content_type: str,
        metadata: Dict[str, str],
    ) -> BlobInfo:
        blob = self._service.get_blob_client(container_name, blob_name)
        try:
            result = await blob.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
                metadata=metadata,
            )
        except AzureError as e:
            # Only the container can be missing on upload
            self._raise_translated(e, "upload_blob", container_name=container_name)

        last_modified = (result or {}).get("last_modified") or datetime.now(timezone.utc)
        return BlobInfo(
            name=blob_name,
            container_name=container_name,
            size=len(data),
            content_type=content_type,
            last_modified=last_modified,
            url=blob.url,
            metadata=dict(metadata),
        )

    async def download_blob(self, container_name: str, blob_name: str) -> BlobDownload:
        blob = self._service.get_blob_client(container_name, blob_name)
        try:
            downloader = await blob.download_blob()
        except AzureError as e:
            self._raise_translated(e, "download_blob", container_name=container_name, blob_name=blob_name)

        props = downloader.properties
        content_settings = props.content_settings
        return BlobDownload(
            name=blob_name,
            container_name=container_name,
            size=props.size or 0,
            content_type=(
                content_settings.content_type
                if content_settings and content_settings.content_type
                else "application/octet-stream"
            ),
            chunks=downloader.chunks(),
            metadata=dict(props.metadata or {}),
        )

    async def delete_blob(self, container_name: str, blob_name: str) -> None:
        blob = self._service.get_blob_client(container_name, blob_name)
        try:
            await blob.delete_blob()
        except AzureError as e:
            self._raise_translated(e, "delete_blob", container_name=container_name, blob_name=blob_name)
        logger.info(f"Deleted blob '{blob_name}' from container '{container_name}'")
