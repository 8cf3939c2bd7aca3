"""
Input Validation

Container naming rules and the upload allow-list / size ceiling. Both run
before any call reaches the storage service.

Author: DocUploader Contributors
Date: 2025
"""

import re
from enum import Enum
from typing import Iterable, Optional, Tuple

from .core.config_manager import DEFAULT_ALLOWED_CONTENT_TYPES, DEFAULT_MAX_UPLOAD_SIZE
from .exceptions import (
    FileTooLargeError,
    InvalidContainerNameError,
    UnsupportedFileTypeError,
)


# ========== Container Name Validation ==========

class ContainerNameRule(str, Enum):
    """Container naming rules, in the order they are checked."""
    REQUIRED = "required"
    LENGTH = "length"
    CHARSET = "charset"
    EDGE_HYPHEN = "edge-hyphen"
    DOUBLE_HYPHEN = "double-hyphen"


class ContainerNameValidator:
    """
    Validates Azure Blob Storage container names.

    Rules (first failing rule wins):
    - Required
    - 3-63 characters
    - Lowercase letters, numbers, hyphens only
    - Must not start or end with a hyphen
    - No consecutive hyphens
    """

    PATTERN = re.compile(r'^[a-z0-9-]+$')
    MIN_LENGTH = 3
    MAX_LENGTH = 63

    MESSAGES = {
        ContainerNameRule.REQUIRED: "Container name is required",
        ContainerNameRule.LENGTH: f"Container name must be between {MIN_LENGTH} and {MAX_LENGTH} characters",
        ContainerNameRule.CHARSET: "Container name must contain only lowercase letters, numbers, and hyphens",
        ContainerNameRule.EDGE_HYPHEN: "Container name cannot start or end with a hyphen",
        ContainerNameRule.DOUBLE_HYPHEN: "Container name cannot contain consecutive hyphens",
    }

    @classmethod
    def find_violation(cls, name: Optional[str]) -> Optional[ContainerNameRule]:
        """
        Return the first rule the name breaks, or None if it is valid.

        Args:
            name: Candidate container name

        Returns:
            Violated rule or None
        """
        if not name:
            return ContainerNameRule.REQUIRED
        if not cls.MIN_LENGTH <= len(name) <= cls.MAX_LENGTH:
            return ContainerNameRule.LENGTH
        if not cls.PATTERN.match(name):
            return ContainerNameRule.CHARSET
        if name.startswith('-') or name.endswith('-'):
            return ContainerNameRule.EDGE_HYPHEN
        if '--' in name:
            return ContainerNameRule.DOUBLE_HYPHEN
        return None

    @classmethod
    def validate(cls, name: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate container name against Azure rules.

        Args:
            name: Container name to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        rule = cls.find_violation(name)
        if rule is None:
            return True, None
        return False, cls.MESSAGES[rule]

    @classmethod
    def validate_raise(cls, name: Optional[str]) -> None:
        """
        Validate container name and raise if invalid.

        Raises:
            InvalidContainerNameError: If name is invalid
        """
        rule = cls.find_violation(name)
        if rule is not None:
            raise InvalidContainerNameError(name or "", rule.value, cls.MESSAGES[rule])


# ========== Upload Validation ==========

class UploadRejection(str, Enum):
    """Reasons an upload is refused."""
    UNSUPPORTED_TYPE = "unsupported-type"
    TOO_LARGE = "too-large"


def normalize_content_type(content_type: Optional[str]) -> Optional[str]:
    """Drop MIME parameters (``; charset=...``) and lowercase."""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


class UploadValidator:
    """
    Checks a file's declared MIME type and byte size before it is stored.

    Stateless apart from its limits; the type is checked before the size.
    """

    def __init__(
        self,
        max_size_bytes: int = DEFAULT_MAX_UPLOAD_SIZE,
        allowed_content_types: Optional[Iterable[str]] = None,
    ):
        self.max_size_bytes = max_size_bytes
        types = allowed_content_types if allowed_content_types is not None else DEFAULT_ALLOWED_CONTENT_TYPES
        self.allowed_content_types = frozenset(t.lower() for t in types)

    def is_allowed_type(self, content_type: Optional[str]) -> bool:
        return normalize_content_type(content_type) in self.allowed_content_types

    def check(self, content_type: Optional[str], size: Optional[int]) -> Optional[UploadRejection]:
        """
        Return the rejection reason for a candidate file, or None to accept.

        Args:
            content_type: Declared MIME type
            size: Byte size; None when not yet known (only the type is checked)
        """
        if not self.is_allowed_type(content_type):
            return UploadRejection.UNSUPPORTED_TYPE
        if size is not None and size > self.max_size_bytes:
            return UploadRejection.TOO_LARGE
        return None

    def validate_raise(self, content_type: Optional[str], size: Optional[int]) -> None:
        """
        Validate a candidate file and raise if it is rejected.

        Raises:
            UnsupportedFileTypeError: If the MIME type is not allowed
            FileTooLargeError: If the size exceeds the ceiling
        """
        rejection = self.check(content_type, size)
        if rejection is UploadRejection.UNSUPPORTED_TYPE:
            raise UnsupportedFileTypeError(content_type)
        if rejection is UploadRejection.TOO_LARGE:
            raise FileTooLargeError(size, self.max_size_bytes)
