"""
Document Service

Application operations behind the HTTP routes: validation, blob naming,
metadata tagging and create-if-absent on upload. Holds no per-request state.

Author: DocUploader Contributors
Date: 2025
"""

import logging
import posixpath
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from .core.config_manager import PublicAccessLevel
from .exceptions import MissingFileError
from .storage.interface import StorageBackend
from .storage.models import (
    META_FILE_SIZE,
    META_ORIGINAL_NAME,
    META_UPLOAD_DATE,
    BlobDownload,
    BlobInfo,
    ContainerInfo,
)
from .validation import ContainerNameValidator, UploadValidator, normalize_content_type

logger = logging.getLogger(__name__)


def generate_blob_name(original_name: str) -> str:
    """Return a container-unique blob name: ``{uuid4}-{original_name}``."""
    return f"{uuid.uuid4()}-{original_name}"


def clean_filename(filename: Optional[str]) -> str:
    """Strip any client-side directory part from an uploaded filename."""
    if not filename:
        return ""
    return posixpath.basename(filename.replace("\\", "/")).strip()


class DocumentService:
    """
    Document operations over an injected storage backend.

    Every method validates its container name before touching storage, so a
    rejected request never reaches the storage service.
    """

    def __init__(
        self,
        storage: StorageBackend,
        upload_validator: Optional[UploadValidator] = None,
        public_access: PublicAccessLevel = PublicAccessLevel.BLOB,
    ):
        self.storage = storage
        self.upload_validator = upload_validator or UploadValidator()
        self.public_access = PublicAccessLevel(public_access)

    # ========== Containers ==========

    async def list_containers(self) -> List[ContainerInfo]:
        return await self.storage.list_containers()

    async def create_container(self, name: Optional[str]) -> str:
        """
        Create a container after validating its name.

        Returns:
            The created container's name

        Raises:
            InvalidContainerNameError: If the name breaks a naming rule
            ContainerAlreadyExistsError: If the container exists
        """
        ContainerNameValidator.validate_raise(name)
        await self.storage.create_container(name, self.public_access)
        logger.info(f"Container '{name}' created (access={self.public_access.value})")
        return name

    # ========== Files ==========

    def check_upload(
        self,
        container_name: str,
        content_type: Optional[str],
        declared_size: Optional[int] = None,
    ) -> None:
        """
        Validate an upload before its body is read.

        Raises:
            InvalidContainerNameError: If the container name is invalid
            UnsupportedFileTypeError: If the MIME type is not allowed
            FileTooLargeError: If the declared size exceeds the ceiling
        """
        ContainerNameValidator.validate_raise(container_name)
        self.upload_validator.validate_raise(content_type, declared_size)

    async def upload_file(
        self,
        container_name: str,
        filename: Optional[str],
        content_type: Optional[str],
        data: bytes,
    ) -> BlobInfo:
        """
        Store an uploaded file under a generated unique name.

        The container is created on demand. Metadata tags ``originalName``,
        ``uploadDate`` and ``fileSize`` are stored with the blob.

        Args:
            container_name: Target container
            filename: Filename supplied by the client
            content_type: Declared MIME type
            data: File content

        Returns:
            The stored blob

        Raises:
            MissingFileError: If no filename was supplied
            InvalidContainerNameError: If the container name is invalid
            UnsupportedFileTypeError: If the MIME type is not allowed
            FileTooLargeError: If the content exceeds the ceiling
        """
        original_name = clean_filename(filename)
        if not original_name:
            raise MissingFileError()

        # Checked again on the actual length; the declared size may be absent
        self.check_upload(container_name, content_type, len(data))

        if await self.storage.ensure_container(container_name, self.public_access):
            logger.info(f"Container '{container_name}' created on upload")

        blob_name = generate_blob_name(original_name)
        metadata = {
            META_ORIGINAL_NAME: original_name,
            META_UPLOAD_DATE: datetime.now(timezone.utc).isoformat(),
            META_FILE_SIZE: str(len(data)),
        }
        blob = await self.storage.upload_blob(
            container_name,
            blob_name,
            data,
            normalize_content_type(content_type),
            metadata,
        )
        logger.info(
            f"Uploaded '{original_name}' to '{container_name}' as '{blob_name}' ({len(data)} bytes)"
        )
        return blob

    async def list_files(self, container_name: str) -> List[BlobInfo]:
        """
        List a container's files with their metadata.

        Raises:
            InvalidContainerNameError: If the container name is invalid
            ContainerNotFoundError: If the container does not exist
        """
        ContainerNameValidator.validate_raise(container_name)
        return await self.storage.list_blobs(container_name)

    async def download_file(self, container_name: str, blob_name: str) -> BlobDownload:
        ContainerNameValidator.validate_raise(container_name)
        return await self.storage.download_blob(container_name, blob_name)

    async def delete_file(self, container_name: str, blob_name: str) -> None:
        """
        Delete a file.

        Raises:
            InvalidContainerNameError: If the container name is invalid
            ContainerNotFoundError: If the container does not exist
            BlobNotFoundError: If the file does not exist
        """
        ContainerNameValidator.validate_raise(container_name)
        await self.storage.delete_blob(container_name, blob_name)
        logger.info(f"Deleted '{blob_name}' from '{container_name}'")
