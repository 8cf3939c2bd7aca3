"""
DocUploader HTTP API

Routes, request/response schemas, exception handlers and middleware.
"""

from .routes import router
from .error_handlers import register_exception_handlers
from .middleware import CorrelationMiddleware

__all__ = ["router", "register_exception_handlers", "CorrelationMiddleware"]
