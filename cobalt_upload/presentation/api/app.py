"""
FastAPI application factory and configuration.

This module creates and configures the FastAPI application with
middleware, upload error rendering and route registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ...application.container import IContainer
from ...core.domain.errors import UploadError
from ...core.interfaces.upload import TUS_RESUMABLE
from ...infrastructure.config.models import ApplicationConfig
from .middleware import ErrorHandlerMiddleware, PerformanceMiddleware, ProtocolHeaderMiddleware
from .routers import files, health

logger = logging.getLogger(__name__)

TUS_HEADERS = [
    "Location",
    "Tus-Resumable",
    "Tus-Version",
    "Tus-Extension",
    "Tus-Max-Size",
    "Upload-Offset",
    "Upload-Length",
    "Upload-Metadata",
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Components are started and stopped by ApplicationStartup around the
    server's lifetime; this only marks the boundaries in the log.
    """
    logger.info("Application starting up...")
    yield
    logger.info("Application shutting down...")


async def upload_error_handler(request: Request, exc: UploadError) -> Response:
    """Render an UploadError as an empty response with its status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} refused ({exc.status_code}): {exc.message}")

    headers = {"Tus-Resumable": TUS_RESUMABLE}
    if exc.status_code == 413:
        headers["Tus-Max-Size"] = str(request.app.state.config.upload.max_size)

    return Response(status_code=exc.status_code, headers=headers)


def create_app(container: IContainer, config: ApplicationConfig) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Dependency injection container
        config: Application configuration

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=config.name,
        version=config.version,
        description="tus 1.0.0 resumable upload server",
        debug=config.debug,
        lifespan=lifespan
    )

    app.state.container = container
    app.state.config = config

    app.add_exception_handler(UploadError, upload_error_handler)  # type: ignore[arg-type]

    _configure_middleware(app, config)
    _register_routes(app)

    logger.info(f"FastAPI application created: {config.name} v{config.version}")
    return app


def _configure_middleware(app: FastAPI, config: ApplicationConfig) -> None:
    """Configure application middleware; the last one added runs first."""
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(PerformanceMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=TUS_HEADERS,
    )

    # outermost, so every response carries the protocol version
    app.add_middleware(ProtocolHeaderMiddleware)

    logger.debug("Middleware configured")


def _register_routes(app: FastAPI) -> None:
    """Register API routes."""
    app.include_router(
        files.router,
        prefix="/files",
        tags=["files"]
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["health"]
    )

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with basic application information."""
        return {
            "name": app.title,
            "version": app.version,
            "status": "running",
            "tus_version": TUS_RESUMABLE,
            "upload_url": "/files",
            "health_url": "/health"
        }

    logger.debug("Routes registered")
