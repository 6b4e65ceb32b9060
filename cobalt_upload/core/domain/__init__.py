"""
Domain rules of the upload protocol that need no I/O.

Holds the error taxonomy and the Upload-Metadata codec.
"""

from .errors import (
    UploadError, InvalidUploadLengthError, InvalidOffsetError, InvalidMetadataError,
    UploadNotFoundError, OffsetConflictError, SizeExceededError,
    UnsupportedMediaTypeError, UploadIOError, IdAllocationError, StorageError,
    ShutdownTimeoutError, ServerStartupError
)
from .metadata import validate_metadata, parse_metadata

__all__ = [
    "UploadError",
    "InvalidUploadLengthError",
    "InvalidOffsetError",
    "InvalidMetadataError",
    "UploadNotFoundError",
    "OffsetConflictError",
    "SizeExceededError",
    "UnsupportedMediaTypeError",
    "UploadIOError",
    "IdAllocationError",
    "StorageError",
    "ShutdownTimeoutError",
    "ServerStartupError",
    "validate_metadata",
    "parse_metadata",
]
