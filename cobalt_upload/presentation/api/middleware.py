"""
HTTP middleware components for request/response processing.

This module provides middleware for the tus protocol version header, error
handling and request timing.
"""

import logging
import time
import uuid
from typing import Awaitable, Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ...core.interfaces.upload import TUS_RESUMABLE
from ...infrastructure.logging.setup import LoggingManager

logger = logging.getLogger(__name__)


def _logging_manager(request: Request) -> Optional[LoggingManager]:
    container = getattr(request.app.state, "container", None)
    if container is None:
        return None
    return container.try_resolve(LoggingManager)  # type: ignore[no-any-return]


class ProtocolHeaderMiddleware(BaseHTTPMiddleware):
    """
    Stamps Tus-Resumable on every response.

    Requests announcing another protocol version are refused with 412;
    OPTIONS is exempt so clients can discover the supported version.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        client_version = request.headers.get("tus-resumable")

        if request.method != "OPTIONS" and client_version is not None and client_version != TUS_RESUMABLE:
            logger.info(f"Rejected {request.method} {request.url.path}: unsupported Tus-Resumable {client_version!r}")
            response = Response(status_code=412, headers={"Tus-Version": TUS_RESUMABLE})
        else:
            response = await call_next(request)

        response.headers["Tus-Resumable"] = TUS_RESUMABLE
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for centralized error handling."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Process request and handle errors."""
        try:
            return await call_next(request)

        except Exception as e:
            message = f"Unhandled error in {request.method} {request.url.path}"
            logging_manager = _logging_manager(request)
            if logging_manager:
                logging_manager.log_error(
                    message, e, request_id=getattr(request.state, "request_id", None))
            else:
                logger.exception(f"{message}: {e}")

            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "message": str(e) if request.app.debug else "An unexpected error occurred",
                    "request_id": getattr(request.state, "request_id", None)
                }
            )


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Middleware timing each request."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Process request and record its duration."""
        start_time = time.time()

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        duration = time.time() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        logging_manager = _logging_manager(request)
        if logging_manager:
            logging_manager.log_access(
                f"{request.method} {request.url.path} {response.status_code}",
                client=request.client.host if request.client else None,
                request_id=request_id
            )
            logging_manager.log_performance(
                f"{request.method} {request.url.path}",
                duration=duration,
                status_code=response.status_code,
                request_id=request_id
            )

        return response
