"""
DocUploader HTTP Client

Synchronous client for the DocUploader API, used by the CLI. Uploads report
progress through a callback receiving ``UploadProgress`` events.

Author: DocUploader Contributors
Date: 2025
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter

from .api.schemas import (
    ContainerEntry,
    ContainerList,
    CreateContainerResponse,
    FileEntry,
    FileList,
    HealthResponse,
    MessageResponse,
    UploadResponse,
)
from .validation import ContainerNameValidator

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"
# Large uploads over slow links
DEFAULT_TIMEOUT = 300.0
DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class UploadProgress:
    """Bytes of the upload request body sent so far."""

    bytes_sent: int
    total_bytes: int

    @property
    def percentage(self) -> int:
        if self.total_bytes <= 0:
            return 100
        return round(self.bytes_sent * 100 / self.total_bytes)


ProgressCallback = Callable[[UploadProgress], None]


class ApiError(Exception):
    """Raised for any non-2xx API response."""

    def __init__(self, status_code: int, code: Optional[str], message: str):
        super().__init__(f"{status_code} {code or 'Error'}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or response.reason_phrase
            code = body.get("code")
        else:
            message = response.text or response.reason_phrase
        return cls(response.status_code, code, message)


class DocUploaderClient:
    """
    Client for the DocUploader HTTP API.

    Args:
        base_url: API root, e.g. ``http://localhost:5000``
        timeout: Request timeout in seconds
        http_client: Pre-built ``httpx.Client`` to use instead of creating one
        chunk_size: Upload chunk size used for progress reporting

    Example:
        ```python
        with DocUploaderClient("http://localhost:5000") as client:
            client.create_container("test-docs")
            client.upload_file("test-docs", "report.pdf", data, "application/pdf")
        ```
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self.chunk_size = chunk_size

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "DocUploaderClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _check(self, response: httpx.Response) -> httpx.Response:
        if response.is_error:
            raise ApiError.from_response(response)
        return response

    def _get_json(self, path: str) -> Any:
        return self._check(self._http.get(path)).json()

    # ========== Containers ==========

    def health(self) -> HealthResponse:
        return HealthResponse.model_validate(self._get_json("/api/health"))

    def list_containers(self) -> List[ContainerEntry]:
        return TypeAdapter(ContainerList).validate_python(self._get_json("/api/containers"))

    def create_container(self, name: str) -> CreateContainerResponse:
        """
        Create a container.

        The name is checked locally first, so an invalid name is never sent.

        Raises:
            InvalidContainerNameError: If the name breaks a naming rule
            ApiError: If the server rejects the request
        """
        ContainerNameValidator.validate_raise(name)
        response = self._check(self._http.post("/api/containers", json={"name": name}))
        return CreateContainerResponse.model_validate(response.json())

    # ========== Files ==========

    def list_files(self, container_name: str) -> List[FileEntry]:
        return TypeAdapter(FileList).validate_python(
            self._get_json(f"/api/containers/{container_name}/files")
        )

    def upload_file(
        self,
        container_name: str,
        filename: str,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResponse:
        """
        Upload a file as the multipart field ``file``.

        Args:
            container_name: Target container (created by the server if absent)
            filename: Filename to store as ``originalName``
            data: File content
            content_type: MIME type
            on_progress: Called after each body chunk is handed to the transport

        Returns:
            Parsed upload response

        Raises:
            ApiError: If the server rejects the upload
        """
        built = self._http.build_request(
            "POST",
            f"/api/upload/{container_name}",
            files={"file": (filename, data, content_type)},
        )
        body = built.read()
        total = len(body)

        def body_chunks() -> Iterator[bytes]:
            sent = 0
            for start in range(0, total, self.chunk_size):
                chunk = body[start:start + self.chunk_size]
                yield chunk
                sent += len(chunk)
                if on_progress is not None:
                    on_progress(UploadProgress(sent, total))

        # Content-Length is kept from the built request so the body is not chunk-encoded
        request = httpx.Request(
            "POST",
            built.url,
            headers=built.headers,
            content=body_chunks(),
            extensions=built.extensions,
        )
        response = self._check(self._http.send(request))
        logger.debug(f"Uploaded {filename} ({len(data)} bytes) to {container_name}")
        return UploadResponse.model_validate(response.json())

    def download_file(
        self,
        container_name: str,
        blob_name: str,
        destination: Union[str, Path],
    ) -> int:
        """
        Stream a file to ``destination``.

        Returns:
            Number of bytes written

        Raises:
            ApiError: If the server reports an error (nothing is written)
            httpx.HTTPError: If the transfer fails; the partial file is removed
        """
        written = 0
        path = f"/api/containers/{container_name}/files/{quote(blob_name)}"
        with self._http.stream("GET", path) as response:
            if response.is_error:
                response.read()
                raise ApiError.from_response(response)
            target = Path(destination)
            try:
                with open(target, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
                        written += len(chunk)
            except BaseException:
                target.unlink(missing_ok=True)
                raise
        return written

    def delete_file(self, container_name: str, blob_name: str) -> MessageResponse:
        response = self._check(
            self._http.delete(f"/api/containers/{container_name}/files/{quote(blob_name)}")
        )
        return MessageResponse.model_validate(response.json())
