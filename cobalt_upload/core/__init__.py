"""
Core module containing the upload protocol rules, domain errors and service interfaces.

Nothing in here depends on FastAPI, uvicorn or the filesystem; the
infrastructure and presentation layers build on these contracts.
"""

from .interfaces.lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .interfaces.upload import IUploadRegistry, IUploadSession, IBackingStore, UploadState, UploadStatus
from .domain.errors import UploadError
from .domain.metadata import validate_metadata, parse_metadata

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "IUploadRegistry",
    "IUploadSession",
    "IBackingStore",
    "UploadState",
    "UploadStatus",
    "UploadError",
    "validate_metadata",
    "parse_metadata",
]
