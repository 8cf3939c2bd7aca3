"""
DocUploader Exception Hierarchy

Exception types for container, blob and upload operations with error codes
and context. Mapped to HTTP status codes in ``docuploader.api.error_handlers``.

Author: DocUploader Contributors
Date: 2025
"""

from typing import Any, Dict, Optional


class DocUploaderError(Exception):
    """
    Base exception for all DocUploader errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., 'ContainerNotFound')
        details: Additional context (container name, blob name, etc.)
    """

    error_code: str = "DocUploaderError"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format for API responses."""
        return {
            "error": self.message,
            "code": self.error_code,
        }


class ConfigurationError(DocUploaderError):
    """Raised when the service cannot be built from its configuration."""
    error_code = "ConfigurationError"


# ========== Validation Errors ==========

class ValidationError(DocUploaderError):
    """Base class for client-correctable request errors."""
    error_code = "ValidationError"


class InvalidContainerNameError(ValidationError):
    """Raised when a container name breaks one of the naming rules."""
    error_code = "InvalidContainerName"

    def __init__(self, container_name: str, reason: str, message: str):
        super().__init__(
            message,
            details={"container_name": container_name, "reason": reason},
        )
        self.container_name = container_name
        self.reason = reason


class UploadRejectedError(ValidationError):
    """Base class for files refused by the upload validator."""
    error_code = "UploadRejected"
    reason: str = "rejected"


class UnsupportedFileTypeError(UploadRejectedError):
    """Raised when the declared MIME type is not on the allow-list."""
    error_code = "UnsupportedFileType"
    reason = "unsupported-type"

    def __init__(self, content_type: Optional[str], message: Optional[str] = None):
        message = message or f"File type not supported: {content_type or 'unknown'}"
        super().__init__(message, details={"content_type": content_type, "reason": self.reason})
        self.content_type = content_type


class FileTooLargeError(UploadRejectedError):
    """Raised when a file exceeds the configured size ceiling."""
    error_code = "FileTooLarge"
    reason = "too-large"

    def __init__(self, size: int, max_size: int, message: Optional[str] = None):
        message = message or (
            f"File too large. Maximum size is {_format_megabytes(max_size)}."
        )
        super().__init__(
            message,
            details={"actual_size": size, "max_size": max_size, "reason": self.reason},
        )
        self.size = size
        self.max_size = max_size


class MissingFileError(ValidationError):
    """Raised when an upload request carries no file."""
    error_code = "MissingFile"

    def __init__(self, message: str = "No file uploaded"):
        super().__init__(message)


# ========== Resource Errors ==========

class ContainerAlreadyExistsError(DocUploaderError):
    """Raised when attempting to create a container that already exists."""
    error_code = "ContainerAlreadyExists"

    def __init__(self, container_name: str, message: Optional[str] = None):
        message = message or "Container already exists"
        super().__init__(message, details={"container_name": container_name})
        self.container_name = container_name


class ContainerNotFoundError(DocUploaderError):
    """Raised when a container is not found."""
    error_code = "ContainerNotFound"

    def __init__(self, container_name: str, message: Optional[str] = None):
        message = message or f"Container '{container_name}' not found"
        super().__init__(message, details={"container_name": container_name})
        self.container_name = container_name


class BlobNotFoundError(DocUploaderError):
    """Raised when a blob is not found."""
    error_code = "BlobNotFound"

    def __init__(self, container_name: str, blob_name: str, message: Optional[str] = None):
        message = message or f"File '{blob_name}' not found in container '{container_name}'"
        super().__init__(
            message,
            details={"container_name": container_name, "blob_name": blob_name},
        )
        self.container_name = container_name
        self.blob_name = blob_name


# ========== Upstream Errors ==========

class StorageServiceError(DocUploaderError):
    """
    Raised when the storage service or the network to it fails.

    The message returned to callers is generic; ``operation`` and the chained
    cause carry the detail for server-side logs.
    """
    error_code = "StorageServiceError"

    def __init__(self, operation: str, message: str = "Storage service request failed"):
        super().__init__(message, details={"operation": operation})
        self.operation = operation


def _format_megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):g}MB"
