"""
DocUploader Storage Layer

Backends that hold containers and blobs: Azure Blob Storage through the
official SDK, and an in-memory emulation for local development and tests.
"""

from .interface import StorageBackend
from .models import BlobDownload, BlobInfo, ContainerInfo
from .factory import create_storage_backend

__all__ = [
    "StorageBackend",
    "BlobDownload",
    "BlobInfo",
    "ContainerInfo",
    "create_storage_backend",
]
