"""
FastAPI dependencies for the upload routes.

The container and the configuration live on ``app.state``; the upload
registry is resolved from the container on each request.
"""

from typing import Any, Type, TypeVar

from fastapi import Depends, HTTPException, Request, status

from ...application.container import IContainer
from ...core.interfaces.upload import IUploadRegistry
from ...infrastructure.config.models import ApplicationConfig

T = TypeVar('T')


def _from_app_state(request: Request, attribute: str, label: str) -> Any:
    value = getattr(request.app.state, attribute, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Application {label} not available"
        )
    return value


def get_container(request: Request) -> IContainer:
    """The DI container attached by create_app; 503 when missing."""
    return _from_app_state(request, "container", "container")  # type: ignore[no-any-return]


def get_config(request: Request) -> ApplicationConfig:
    """The configuration attached by create_app; 503 when missing."""
    return _from_app_state(request, "config", "configuration")  # type: ignore[no-any-return]


def get_component(service_type: Type[T]) -> Any:
    """
    Build a dependency that resolves service_type from the container.

    A service that cannot be resolved is reported as 503.
    """
    def _resolve(container: IContainer = Depends(get_container)) -> T:
        try:
            return container.resolve(service_type)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Service {service_type.__name__} not available: {e}"
            ) from e

    return _resolve


get_registry = get_component(IUploadRegistry)  # type: ignore[type-abstract]
