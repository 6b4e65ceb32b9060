"""
Cobalt Upload - tus 1.0.0 resumable upload server.

This package provides the server side of the tus resumable-upload protocol:
upload sessions addressed by identifier, offset-checked chunked appends that
survive broken connections, opaque metadata handling and graceful shutdown
with in-flight request draining.
"""

__version__ = "0.1.0"
__author__ = "Max Qian"
__email__ = "astro_air@126.com"

# Public API exports
from .core.interfaces.lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .core.interfaces.upload import IUploadRegistry, IUploadSession, IBackingStore, UploadState, UploadStatus
from .core.domain.errors import UploadError
from .application.container import Container, IContainer

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
    "Container",
    "IContainer",
]
