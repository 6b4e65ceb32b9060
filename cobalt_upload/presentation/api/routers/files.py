"""
tus upload endpoints.

Capability discovery, upload creation, status and chunk append. Failures
are raised as UploadError and rendered by the application's exception
handler.
"""

import logging
from typing import Optional, Type

from fastapi import APIRouter, Depends, Header, Request, Response

from ....core.domain.errors import (
    InvalidOffsetError, InvalidUploadLengthError, UploadError
)
from ....core.interfaces.upload import IUploadRegistry, TUS_EXTENSIONS, TUS_RESUMABLE
from ....infrastructure.config.models import ApplicationConfig
from ....infrastructure.services.upload.registry import ensure_offset_content_type
from ..dependencies import get_config, get_registry

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_header_int(value: Optional[str], header: str, error: Type[UploadError]) -> int:
    """
    Parse an integer request header; an absent header counts as 0.

    Raises:
        The given UploadError subclass if the value is not an integer
    """
    if value is None:
        return 0
    try:
        return int(value.strip())
    except ValueError:
        raise error(f"{header} must be an integer, got {value!r}") from None


def build_location(request: Request, config: ApplicationConfig, upload_id: str) -> str:
    """URL of an upload, based on the configured public URL when there is one."""
    if config.server.public_url:
        return f"{config.server.public_url.rstrip('/')}/files/{upload_id}"
    return str(request.url_for("get_upload_status", upload_id=upload_id))


@router.options("")
async def discover_capabilities(registry: IUploadRegistry = Depends(get_registry)) -> Response:
    """Advertise protocol version, extensions and size limit."""
    return Response(status_code=204, headers={
        "Tus-Version": TUS_RESUMABLE,
        "Tus-Extension": ",".join(TUS_EXTENSIONS),
        "Tus-Max-Size": str(registry.max_size),
    })


@router.post("")
async def create_upload(
    request: Request,
    upload_length: Optional[str] = Header(None),
    upload_metadata: Optional[str] = Header(None),
    registry: IUploadRegistry = Depends(get_registry),
    config: ApplicationConfig = Depends(get_config)
) -> Response:
    """Create an upload and point the client at it."""
    declared_size = parse_header_int(upload_length, "Upload-Length", InvalidUploadLengthError)
    upload_id = await registry.create(declared_size, upload_metadata)

    return Response(status_code=201, headers={
        "Location": build_location(request, config, upload_id),
    })


@router.head("/{upload_id}", name="get_upload_status")
async def get_upload_status(
    upload_id: str,
    registry: IUploadRegistry = Depends(get_registry)
) -> Response:
    """Report the committed offset of an upload."""
    status = registry.status(upload_id)

    headers = {
        "Upload-Offset": str(status.offset),
        "Upload-Length": str(status.declared_size),
        "Cache-Control": "no-store",
    }
    if status.metadata:
        headers["Upload-Metadata"] = status.metadata

    return Response(status_code=200, headers=headers)


@router.patch("/{upload_id}")
async def append_chunk(
    upload_id: str,
    request: Request,
    content_type: Optional[str] = Header(None),
    upload_offset: Optional[str] = Header(None),
    registry: IUploadRegistry = Depends(get_registry)
) -> Response:
    """Append the request body at the client's offset."""
    ensure_offset_content_type(content_type)
    # unknown uploads answer 404 before the offset is looked at
    registry.lookup(upload_id)

    expected_offset = parse_header_int(upload_offset, "Upload-Offset", InvalidOffsetError)
    if expected_offset < 0:
        raise InvalidOffsetError(f"Upload-Offset must not be negative, got {expected_offset}")

    new_offset = await registry.append(upload_id, expected_offset, content_type, request.stream())

    return Response(status_code=204, headers={"Upload-Offset": str(new_offset)})
