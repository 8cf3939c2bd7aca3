"""
DocUploader Application Factory

Builds the FastAPI application: storage backend, document service, CORS,
correlation middleware, exception handlers and routes.

Author: DocUploader Contributors
Date: 2025
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.error_handlers import register_exception_handlers
from .api.middleware import CORRELATION_HEADER, CorrelationMiddleware
from .api.routes import router
from .core.config_manager import ConfigManager, RuntimeMode, UploaderConfig
from .core.logging_config import setup_logging
from .service import DocumentService
from .storage.factory import create_storage_backend
from .storage.interface import StorageBackend
from .validation import UploadValidator

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[UploaderConfig] = None,
    storage: Optional[StorageBackend] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Validated configuration. When omitted, configuration is loaded
            from the environment (and the file named by DOCUPLOADER_CONFIG)
            and logging is set up from it.
        storage: Storage backend to use instead of the configured one

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: If the storage backend cannot be built
    """
    if config is None:
        config = ConfigManager().load(config_file=os.getenv("DOCUPLOADER_CONFIG"))
        setup_logging(
            level=config.logging.level,
            format_type=config.logging.format,
            log_file=config.logging.file,
            rotation_size=config.logging.rotation_size,
            rotation_count=config.logging.rotation_count,
            module_levels=config.logging.module_levels
        )

    if storage is None:
        storage = create_storage_backend(config.storage)

    documents = DocumentService(
        storage,
        UploadValidator(
            max_size_bytes=config.uploads.max_size_bytes,
            allowed_content_types=config.uploads.allowed_content_types,
        ),
        public_access=config.storage.public_access,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"DocUploader v{__version__} started (mode={RuntimeMode(config.server.mode).value})")
        try:
            yield
        finally:
            await storage.close()
            logger.info("DocUploader stopped")

    production = RuntimeMode(config.server.mode) == RuntimeMode.PRODUCTION
    app = FastAPI(
        title="DocUploader",
        description="Document upload API over Azure Blob Storage",
        version=__version__,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
        openapi_url=None if production else "/openapi.json",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.storage = storage
    app.state.documents = documents

    app.add_middleware(CorrelationMiddleware)
    # Added last so it wraps the correlation middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.server.allowed_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )

    register_exception_handlers(app)
    app.include_router(router)

    logger.debug("FastAPI application created")
    return app
