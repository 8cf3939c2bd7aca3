"""
Correlation ID Middleware

Extracts or generates a correlation ID per request, exposes it to log records
and echoes it in the ``x-correlation-id`` response header.

Author: DocUploader Contributors
Date: 2025
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.logging_config import clear_correlation_id, set_correlation_id
from .error_handlers import internal_error_response

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "x-correlation-id"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware to handle correlation ID extraction and propagation."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        start_time = time.time()
        logger.info(f"Request started: {request.method} {request.url.path}")

        try:
            response: Response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                f"Request completed: {request.method} {request.url.path} - "
                f"{response.status_code} ({duration_ms:.2f}ms)"
            )
            return response

        except Exception:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path} ({duration_ms:.2f}ms)",
                exc_info=True,
            )
            # Built inside CORS so the 500 carries the CORS and correlation headers
            response = internal_error_response()
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()
