"""
DocUploader API Routes

FastAPI endpoints for containers, files and health.

Author: DocUploader Contributors
Date: 2025
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import StreamingResponse

from ..exceptions import MissingFileError
from ..service import DocumentService
from .schemas import (
    ContainerEntry,
    ContainerList,
    CreateContainerRequest,
    CreateContainerResponse,
    FileEntry,
    FileList,
    HealthResponse,
    MessageResponse,
    UploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])


def get_document_service(request: Request) -> DocumentService:
    """Dependency returning the service built by the application factory."""
    return request.app.state.documents


def content_disposition(filename: str) -> str:
    """Build an attachment Content-Disposition header for a filename."""
    try:
        filename.encode("ascii")
    except UnicodeEncodeError:
        return f"attachment; filename*=UTF-8''{quote(filename)}"
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    return f'attachment; filename="{escaped}"'


# ========== Container Operations ==========

@router.get("/containers", response_model=ContainerList)
async def list_containers(
    documents: DocumentService = Depends(get_document_service),
):
    """List all containers."""
    containers = await documents.list_containers()
    return [ContainerEntry.from_info(c) for c in containers]


@router.post("/containers", response_model=CreateContainerResponse)
async def create_container(
    body: CreateContainerRequest,
    documents: DocumentService = Depends(get_document_service),
):
    """
    Create a container.

    Returns 400 if the name breaks a naming rule and 409 if it already exists.
    """
    name = await documents.create_container(body.name)
    return CreateContainerResponse(message="Container created successfully", name=name)


# ========== File Operations ==========

@router.post("/upload/{container_name}", response_model=UploadResponse)
async def upload_file(
    container_name: str,
    file: Optional[UploadFile] = File(None),
    documents: DocumentService = Depends(get_document_service),
):
    """
    Upload a file from the multipart field ``file``.

    The container is created if it does not exist.
    """
    if file is None:
        raise MissingFileError()

    # Reject on the declared type and size before reading the body
    documents.check_upload(container_name, file.content_type, file.size)
    try:
        data = await file.read()
    finally:
        await file.close()

    blob = await documents.upload_file(container_name, file.filename, file.content_type, data)
    return UploadResponse(
        message="File uploaded successfully",
        filename=blob.name,
        original_name=blob.original_name,
        url=blob.url,
        size=blob.size,
        container=container_name,
    )


@router.get("/containers/{container_name}/files", response_model=FileList)
async def list_files(
    container_name: str,
    documents: DocumentService = Depends(get_document_service),
):
    """List files in a container. Returns 404 if the container does not exist."""
    blobs = await documents.list_files(container_name)
    return [FileEntry.from_blob(b) for b in blobs]


@router.get("/containers/{container_name}/files/{filename:path}")
async def download_file(
    container_name: str,
    filename: str,
    documents: DocumentService = Depends(get_document_service),
):
    download = await documents.download_file(container_name, filename)
    return StreamingResponse(
        download.chunks,
        media_type=download.content_type,
        headers={
            "Content-Disposition": content_disposition(download.original_name),
            "Content-Length": str(download.size),
        },
    )


@router.delete("/containers/{container_name}/files/{filename:path}", response_model=MessageResponse)
async def delete_file(
    container_name: str,
    filename: str,
    documents: DocumentService = Depends(get_document_service),
):
    """Delete a file. Returns 404 if the container or file does not exist."""
    await documents.delete_file(container_name, filename)
    return MessageResponse(message="File deleted successfully")


# ========== Health ==========

@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc))
