"""
Core interfaces defining the contracts between the upload components.

These interfaces keep the registry, the HTTP layer and the storage backend
decoupled from each other.
"""

from .lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .upload import (
    IUploadRegistry, IUploadSession, IBackingStore, IAppendHandle,
    UploadState, UploadStatus, OFFSET_OCTET_STREAM, TUS_EXTENSIONS, TUS_RESUMABLE
)

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "IUploadRegistry",
    "IUploadSession",
    "IBackingStore",
    "IAppendHandle",
    "UploadState",
    "UploadStatus",
    "OFFSET_OCTET_STREAM",
    "TUS_EXTENSIONS",
    "TUS_RESUMABLE",
]
