"""
Upload service interfaces for the Cobalt Upload application.

This module defines the contracts for the upload registry, individual upload
sessions and the byte store that backs each session.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncContextManager, AsyncIterator, Dict, Optional

from .lifecycle import IComponent, IStartable


TUS_RESUMABLE = "1.0.0"
TUS_EXTENSIONS = ("creation",)
OFFSET_OCTET_STREAM = "application/offset+octet-stream"


class UploadState(Enum):
    """Upload state, derived from offset versus declared size."""
    CREATED = "created"
    RECEIVING = "receiving"
    COMPLETE = "complete"

    @classmethod
    def derive(cls, offset: int, declared_size: int) -> "UploadState":
        """Work out the state for an offset/size pair."""
        if offset >= declared_size:
            return cls.COMPLETE
        if offset == 0:
            return cls.CREATED
        return cls.RECEIVING


@dataclass(frozen=True)
class UploadStatus:
    """Snapshot of an upload session, as returned by status queries."""
    upload_id: str
    offset: int
    declared_size: int
    metadata: str
    state: UploadState
    created_at: float
    updated_at: float

    @property
    def progress_percentage(self) -> float:
        """Calculate upload progress percentage."""
        if self.declared_size == 0:
            return 100.0
        return min(self.offset / self.declared_size, 1.0) * 100.0

    @property
    def is_complete(self) -> bool:
        """Check if every declared byte has been received."""
        return self.state == UploadState.COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upload_id": self.upload_id,
            "offset": self.offset,
            "declared_size": self.declared_size,
            "metadata": self.metadata,
            "state": self.state.value,
            "progress_percentage": self.progress_percentage,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class IAppendHandle(ABC):
    """Open append handle on one session's backing bytes."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Append data and flush it.

        When this returns, the bytes are part of the store and count towards
        the session offset.

        Raises:
            OSError: If the bytes could not be written.
        """
        pass


class IBackingStore(IStartable):
    """Append-only byte store, one entry per upload identifier."""

    @abstractmethod
    async def create(self, upload_id: str) -> None:
        """
        Create an empty entry for a new upload.

        Raises:
            OSError: If the entry cannot be created or already exists.
        """
        pass

    @abstractmethod
    def open_append(self, upload_id: str) -> AsyncContextManager[IAppendHandle]:
        """Open the entry for appending; use as ``async with``."""
        pass


class IUploadSession(ABC):
    """Interface for a single upload session."""

    @property
    @abstractmethod
    def upload_id(self) -> str:
        pass

    @property
    @abstractmethod
    def declared_size(self) -> int:
        pass

    @property
    @abstractmethod
    def offset(self) -> int:
        """Last committed offset."""
        pass

    @property
    @abstractmethod
    def metadata(self) -> str:
        pass

    @property
    @abstractmethod
    def state(self) -> UploadState:
        pass

    @abstractmethod
    async def append(self, expected_offset: int, stream: AsyncIterator[bytes]) -> int:
        """
        Append a payload at the expected offset.

        Args:
            expected_offset: Offset the client believes the upload is at
            stream: Payload bytes, in pieces of any size

        Returns:
            The offset after the payload has been written

        Raises:
            OffsetConflictError: If expected_offset is not the current offset
            UploadIOError: If reading or writing failed part way
        """
        pass

    @abstractmethod
    def get_status(self) -> UploadStatus:
        """Snapshot of the session."""
        pass


class IUploadRegistry(IComponent):
    """
    Interface for the upload registry.

    The registry owns every session for the lifetime of the process; entries
    are added by create and never removed.
    """

    @property
    @abstractmethod
    def max_size(self) -> int:
        """Largest declared size accepted by create."""
        pass

    @abstractmethod
    async def create(self, declared_size: int, metadata: Optional[str] = None) -> str:
        """
        Create a new upload session.

        Args:
            declared_size: Total number of bytes the client will send
            metadata: Raw Upload-Metadata value (optional)

        Returns:
            Identifier of the new session

        Raises:
            InvalidUploadLengthError: If declared_size is negative
            SizeExceededError: If declared_size is above max_size
            InvalidMetadataError: If metadata is malformed
            IdAllocationError: If no free identifier could be found
            StorageError: If the backing store entry could not be created
        """
        pass

    @abstractmethod
    def lookup(self, upload_id: str) -> IUploadSession:
        """
        Find a session by identifier.

        Raises:
            UploadNotFoundError: If no such session exists
        """
        pass

    @abstractmethod
    def status(self, upload_id: str) -> UploadStatus:
        """
        Read the last committed state of a session.

        Raises:
            UploadNotFoundError: If no such session exists
        """
        pass

    @abstractmethod
    async def append(
        self,
        upload_id: str,
        expected_offset: int,
        content_type: Optional[str],
        stream: AsyncIterator[bytes]
    ) -> int:
        """
        Run the append protocol for one PATCH request.

        Checks, in order: content type, session existence, offset match.

        Returns:
            The new offset
        """
        pass
