"""
In-Memory Blob Backend

Process-local emulation of the container/blob operations DocUploader uses.
Selected with ``storage.backend: memory`` for local development and tests.

Author: DocUploader Contributors
Date: 2025
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List
from urllib.parse import quote

from ..core.config_manager import PublicAccessLevel
from ..exceptions import (
    BlobNotFoundError,
    ContainerAlreadyExistsError,
    ContainerNotFoundError,
)
from .interface import StorageBackend
from .models import BlobDownload, BlobInfo, ContainerInfo

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 4 * 1024 * 1024


@dataclass
class _StoredBlob:
    data: bytes
    content_type: str
    metadata: Dict[str, str]
    last_modified: datetime


@dataclass
class _StoredContainer:
    public_access: PublicAccessLevel
    last_modified: datetime
    blobs: Dict[str, _StoredBlob] = field(default_factory=dict)


class InMemoryBlobBackend(StorageBackend):
    """
    In-memory storage backend for containers and blobs.

    Thread-safe using an asyncio lock. Contents are lost on restart.
    """

    def __init__(self, account_url: str = "http://127.0.0.1:5000/storage"):
        self.account_url = account_url.rstrip("/")
        self._containers: Dict[str, _StoredContainer] = {}
        self._lock = asyncio.Lock()
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def reset(self) -> None:
        """Drop all containers and blobs."""
        async with self._lock:
            self._containers.clear()

    def blob_url(self, container_name: str, blob_name: str) -> str:
        return f"{self.account_url}/{container_name}/{quote(blob_name)}"

    # ========== Container Operations ==========

    async def list_containers(self) -> List[ContainerInfo]:
        async with self._lock:
            return [
                ContainerInfo(name=name, last_modified=container.last_modified)
                for name, container in sorted(self._containers.items())
            ]

    async def create_container(self, name: str, public_access: PublicAccessLevel) -> None:
        async with self._lock:
            if name in self._containers:
                raise ContainerAlreadyExistsError(name)
            self._containers[name] = _StoredContainer(
                public_access=PublicAccessLevel(public_access),
                last_modified=datetime.now(timezone.utc),
            )
        logger.debug(f"Created container '{name}' (access={PublicAccessLevel(public_access).value})")

    async def ensure_container(self, name: str, public_access: PublicAccessLevel) -> bool:
        async with self._lock:
            if name in self._containers:
                return False
            self._containers[name] = _StoredContainer(
                public_access=PublicAccessLevel(public_access),
                last_modified=datetime.now(timezone.utc),
            )
        logger.debug(f"Created container '{name}' on demand")
        return True

    # ========== Blob Operations ==========

    def _get_container(self, name: str) -> _StoredContainer:
        container = self._containers.get(name)
        if container is None:
            raise ContainerNotFoundError(name)
        return container

    def _to_info(self, container_name: str, blob_name: str, blob: _StoredBlob) -> BlobInfo:
        return BlobInfo(
            name=blob_name,
            container_name=container_name,
            size=len(blob.data),
            content_type=blob.content_type,
            last_modified=blob.last_modified,
            url=self.blob_url(container_name, blob_name),
            metadata=dict(blob.metadata),
        )

    async def list_blobs(self, container_name: str) -> List[BlobInfo]:
        async with self._lock:
            container = self._get_container(container_name)
            return [
                self._to_info(container_name, blob_name, blob)
                for blob_name, blob in sorted(container.blobs.items())
            ]

    async def upload_blob(
        self,
        container_name: str,
        blob_name: str,
        data: bytes,
        content_type: str,
        metadata: Dict[str, str],
    ) -> BlobInfo:
        now = datetime.now(timezone.utc)
        async with self._lock:
            container = self._get_container(container_name)
            blob = _StoredBlob(
                data=bytes(data),
                content_type=content_type,
                metadata=dict(metadata),
                last_modified=now,
            )
            container.blobs[blob_name] = blob
            container.last_modified = now
            return self._to_info(container_name, blob_name, blob)

    async def download_blob(self, container_name: str, blob_name: str) -> BlobDownload:
        async with self._lock:
            container = self._get_container(container_name)
            blob = container.blobs.get(blob_name)
            if blob is None:
                raise BlobNotFoundError(container_name, blob_name)

        return BlobDownload(
            name=blob_name,
            container_name=container_name,
            size=len(blob.data),
            content_type=blob.content_type,
            chunks=_iter_chunks(blob.data),
            metadata=dict(blob.metadata),
        )

    async def delete_blob(self, container_name: str, blob_name: str) -> None:
        async with self._lock:
            container = self._get_container(container_name)
            if blob_name not in container.blobs:
                raise BlobNotFoundError(container_name, blob_name)
            del container.blobs[blob_name]
            container.last_modified = datetime.now(timezone.utc)


async def _iter_chunks(data: bytes) -> AsyncIterator[bytes]:
    for start in range(0, len(data), DOWNLOAD_CHUNK_SIZE):
        yield data[start:start + DOWNLOAD_CHUNK_SIZE]
