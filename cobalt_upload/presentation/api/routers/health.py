"""
Health check API endpoints.

Liveness, readiness against the upload registry, and a detailed view that
asks every registered component for its status.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ....application.container import IContainer
from ....core.interfaces.lifecycle import IComponent
from ....core.interfaces.upload import IUploadRegistry, TUS_RESUMABLE
from ....infrastructure.config.models import ApplicationConfig
from ..dependencies import get_config, get_container, get_registry

router = APIRouter()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _application_info(config: ApplicationConfig) -> Dict[str, Any]:
    return {
        "name": config.name,
        "version": config.version,
        "environment": config.environment,
        "tus_version": TUS_RESUMABLE
    }


@router.get("/")
async def health_check(config: ApplicationConfig = Depends(get_config)) -> Dict[str, Any]:
    """Basic health check; answers as long as the process serves requests."""
    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "application": _application_info(config)
    }


@router.get("/detailed")
async def detailed_health_check(
    container: IContainer = Depends(get_container),
    config: ApplicationConfig = Depends(get_config)
) -> Dict[str, Any]:
    """
    Detailed health check with component status.

    Any component reporting unhealthy turns the overall status to degraded.
    """
    components: Dict[str, Dict[str, Any]] = {}

    for service_type in container.get_registrations():
        component = container.try_resolve(service_type)
        if isinstance(component, IComponent):
            components[component.name] = await component.check_health()

    healthy = all(info.get("healthy", True) for info in components.values())
    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": _timestamp(),
        "application": _application_info(config),
        "components": components
    }


@router.get("/ready")
async def readiness_check(registry: IUploadRegistry = Depends(get_registry)) -> Dict[str, Any]:
    """Ready once the upload registry is running."""
    health = await registry.check_health()

    return {
        "ready": bool(health.get("healthy")),
        "timestamp": _timestamp(),
        "uploads_total": health.get("uploads_total", 0)
    }


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    return {
        "alive": True,
        "timestamp": _timestamp()
    }
