"""
FastAPI Exception Handlers

Maps DocUploader exceptions to HTTP error responses of the form
``{"error": "<message>", "code": "<code>"}``.

Author: DocUploader Contributors
Date: 2025
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..exceptions import (
    BlobNotFoundError,
    ContainerAlreadyExistsError,
    ContainerNotFoundError,
    DocUploaderError,
    StorageServiceError,
    ValidationError,
)
from ..core.logging_config import log_with_context
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)


# Exception to HTTP status code mapping
EXCEPTION_STATUS_CODES = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ContainerAlreadyExistsError: status.HTTP_409_CONFLICT,
    ContainerNotFoundError: status.HTTP_404_NOT_FOUND,
    BlobNotFoundError: status.HTTP_404_NOT_FOUND,
    StorageServiceError: status.HTTP_502_BAD_GATEWAY,
}

INTERNAL_ERROR_MESSAGE = "Internal server error"


def get_status_code_for_exception(exc: Exception) -> int:
    """
    Get HTTP status code for exception type.

    Args:
        exc: Exception instance

    Returns:
        HTTP status code
    """
    exc_type = type(exc)
    if exc_type in EXCEPTION_STATUS_CODES:
        return EXCEPTION_STATUS_CODES[exc_type]

    for exception_type, status_code in EXCEPTION_STATUS_CODES.items():
        if isinstance(exc, exception_type):
            return status_code

    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def docuploader_exception_handler(request: Request, exc: DocUploaderError) -> JSONResponse:
    """
    Handle DocUploaderError exceptions.

    Client-correctable errors are logged at WARNING; upstream failures at
    ERROR (the backend has already logged the SDK traceback).
    """
    status_code = get_status_code_for_exception(exc)
    log_level = logging.ERROR if status_code >= 500 else logging.WARNING
    log_with_context(
        logger,
        log_level,
        f"{request.method} {request.url.path} -> {status_code} {exc.error_code}: {exc.message}",
        status_code=status_code,
        error_code=exc.error_code,
        **exc.details,
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests as 400 with the first validation problem."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location + ': ' if location else ''}{first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"

    logger.warning(f"{request.method} {request.url.path} -> 400 InvalidRequest: {message}")
    body = ErrorResponse(error=message, code="InvalidRequest")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


def internal_error_response() -> JSONResponse:
    """Build the generic 500 response. No exception detail reaches the caller."""
    body = ErrorResponse(error=INTERNAL_ERROR_MESSAGE, code="InternalError")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump()
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions raised outside the correlation middleware."""
    logger.error(
        f"Unexpected error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
        exc_info=exc,
    )
    return internal_error_response()


def register_exception_handlers(app) -> None:
    """
    Register exception handlers with a FastAPI app.

    Args:
        app: FastAPI application
    """
    app.add_exception_handler(DocUploaderError, docuploader_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
