"""
Storage Models

Containers, blob listings and download handles as returned by storage backends.

Author: DocUploader Contributors
Date: 2025
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Dict, Optional

from pydantic import BaseModel, Field

# Metadata tags written alongside every uploaded blob
META_ORIGINAL_NAME = "originalName"
META_UPLOAD_DATE = "uploadDate"
META_FILE_SIZE = "fileSize"


def get_metadata_value(metadata: Optional[Dict[str, str]], key: str) -> Optional[str]:
    """
    Look up a metadata tag case-insensitively.

    Azure treats metadata names as case-insensitive, and some proxies return
    them lowercased.
    """
    if not metadata:
        return None
    wanted = key.lower()
    for name, value in metadata.items():
        if name.lower() == wanted:
            return value
    return None


class ContainerInfo(BaseModel):
    """A container as listed by the storage service."""

    name: str = Field(description="Container name")
    last_modified: datetime = Field(description="Last modified timestamp")


class BlobInfo(BaseModel):
    """A blob as listed by (or after upload to) the storage service."""

    name: str = Field(description="Generated blob name")
    container_name: str = Field(description="Parent container name")
    size: int = Field(description="Blob size in bytes")
    content_type: str = Field(default="application/octet-stream")
    last_modified: datetime = Field(description="Last modified timestamp")
    url: str = Field(description="Externally reachable blob URL")
    metadata: Dict[str, str] = Field(default_factory=dict)

    @property
    def original_name(self) -> str:
        """Filename given at upload time, falling back to the blob name."""
        return get_metadata_value(self.metadata, META_ORIGINAL_NAME) or self.name


@dataclass
class BlobDownload:
    """
    An open blob download.

    ``chunks`` yields the blob content and must be consumed at most once.
    """

    name: str
    container_name: str
    size: int
    content_type: str
    chunks: AsyncIterator[bytes]
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def original_name(self) -> str:
        return get_metadata_value(self.metadata, META_ORIGINAL_NAME) or self.name
