"""
API Schemas

Request and response bodies for the HTTP API. Field names are camelCase on the
wire and snake_case in Python.

Author: DocUploader Contributors
Date: 2025
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..storage.models import BlobInfo, ContainerInfo


class ApiModel(BaseModel):
    """Base for wire models: camelCase aliases, populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContainerEntry(ApiModel):
    name: str
    last_modified: datetime

    @classmethod
    def from_info(cls, info: ContainerInfo) -> "ContainerEntry":
        return cls(name=info.name, last_modified=info.last_modified)


class CreateContainerRequest(ApiModel):
    """Body of ``POST /api/containers``. A missing name is reported by the name rules."""

    name: str = ""


class CreateContainerResponse(ApiModel):
    message: str
    name: str


class FileEntry(ApiModel):
    """One stored file as listed by ``GET /api/containers/{name}/files``."""

    name: str = Field(description="Generated blob name")
    original_name: str = Field(description="Filename given at upload time")
    last_modified: datetime
    size: int
    content_type: str
    url: str

    @classmethod
    def from_blob(cls, blob: BlobInfo) -> "FileEntry":
        return cls(
            name=blob.name,
            original_name=blob.original_name,
            last_modified=blob.last_modified,
            size=blob.size,
            content_type=blob.content_type,
            url=blob.url,
        )


class UploadResponse(ApiModel):
    message: str
    filename: str = Field(description="Generated blob name")
    original_name: str
    url: str
    size: int
    container: str


class MessageResponse(ApiModel):
    message: str


class HealthResponse(ApiModel):
    status: str
    timestamp: datetime


class ErrorResponse(ApiModel):
    error: str
    code: str


ContainerList = List[ContainerEntry]
FileList = List[FileEntry]
