"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.routes import include_api_routes
from storefront.config import settings
from storefront.errors import (
    DuplicateCategoryError,
    InvalidImageError,
    NotFoundError,
    StorageRemoveError,
    StorageUploadError,
    StorefrontError,
    ValidationFailure,
)
from storefront.services.clients.object_storage import get_object_storage
from storefront.services.storage.redis_client import get_redis_client
from storefront.services.storage.settings_store import SettingsStore

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[StorefrontError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateCategoryError: status.HTTP_409_CONFLICT,
    ValidationFailure: status.HTTP_400_BAD_REQUEST,
    InvalidImageError: status.HTTP_400_BAD_REQUEST,
    StorageUploadError: status.HTTP_502_BAD_GATEWAY,
    StorageRemoveError: status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    try:
        await SettingsStore(get_redis_client()).load()
        logger.info("Site settings ready")
    except Exception:
        logger.exception("Failed loading site settings on startup")

    if get_object_storage() is None:
        logger.warning("Object storage is not configured; uploads are disabled")

    yield

    storage = get_object_storage()
    if storage is not None and hasattr(storage, "aclose"):
        await storage.aclose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Storefront",
        description="Age-gated storefront catalog and admin back-office",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    _register_exception_handlers(app)
    include_api_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _register_exception_handlers(app: FastAPI) -> None:
    """Translate domain errors into JSON responses; never leak internals."""

    async def _storefront_error(request: Request, exc: StorefrontError) -> JSONResponse:
        status_code = next(
            (code for kind, code in _ERROR_STATUS.items() if isinstance(exc, kind)),
            status.HTTP_400_BAD_REQUEST,
        )
        if status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An unexpected error occurred"},
        )

    app.add_exception_handler(StorefrontError, _storefront_error)
    app.add_exception_handler(Exception, _unexpected_error)
