"""
Error taxonomy for the upload protocol.

Every request-level failure is an UploadError carrying the HTTP status the
presentation layer answers with. None of them is fatal to the process.
"""

from typing import Optional


class UploadError(Exception):
    """Base class for failures of a single upload request."""

    status_code: int = 500
    error_code: str = "UPLOAD_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)


class InvalidUploadLengthError(UploadError):
    """Upload-Length is missing a number or is negative."""
    status_code = 400
    error_code = "INVALID_UPLOAD_LENGTH"


class InvalidOffsetError(UploadError):
    """Upload-Offset is not a non-negative integer."""
    status_code = 400
    error_code = "INVALID_UPLOAD_OFFSET"


class InvalidMetadataError(UploadError):
    """Upload-Metadata failed validation."""
    status_code = 400
    error_code = "INVALID_METADATA"


class UploadNotFoundError(UploadError):
    """No session is registered under the identifier."""
    status_code = 404
    error_code = "UPLOAD_NOT_FOUND"

    def __init__(self, upload_id: str):
        super().__init__(f"Upload not found: {upload_id}")
        self.upload_id = upload_id


class OffsetConflictError(UploadError):
    """The client's offset does not match the session offset."""
    status_code = 409
    error_code = "OFFSET_CONFLICT"

    def __init__(self, expected_offset: int, current_offset: int):
        super().__init__(
            f"Offset mismatch: client sent {expected_offset}, upload is at {current_offset}")
        self.expected_offset = expected_offset
        self.current_offset = current_offset


class SizeExceededError(UploadError):
    """Declared size or payload is larger than allowed."""
    status_code = 413
    error_code = "SIZE_EXCEEDED"

    def __init__(self, message: str, limit: int):
        super().__init__(message)
        self.limit = limit


class UnsupportedMediaTypeError(UploadError):
    """PATCH body is not application/offset+octet-stream."""
    status_code = 415
    error_code = "UNSUPPORTED_MEDIA_TYPE"


class UploadIOError(UploadError):
    """Reading the payload or writing the store failed part way."""
    status_code = 500
    error_code = "UPLOAD_IO_ERROR"

    def __init__(self, message: str, offset: int):
        super().__init__(message)
        self.offset = offset


class IdAllocationError(UploadError):
    """No unused identifier could be generated."""
    status_code = 500
    error_code = "ID_ALLOCATION_FAILED"


class StorageError(UploadError):
    """The backing store entry for a new upload could not be created."""
    status_code = 500
    error_code = "STORAGE_FAILURE"


class ShutdownTimeoutError(Exception):
    """In-flight requests were still running when the drain deadline passed."""

    def __init__(self, timeout: float, in_flight: int):
        super().__init__(
            f"Shutdown deadline of {timeout}s exceeded with {in_flight} request(s) in flight")
        self.timeout = timeout
        self.in_flight = in_flight


class ServerStartupError(Exception):
    """The listening socket could not be acquired."""
    pass
