"""
Upload Registry implementation for the Cobalt Upload application.

This module owns every upload session of the process: it allocates
identifiers, creates the backing store entry, answers status queries and
runs the append protocol.
"""

import asyncio
import logging
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional, Set

from ....core.domain.errors import (
    IdAllocationError, InvalidUploadLengthError, OffsetConflictError, SizeExceededError,
    StorageError, UnsupportedMediaTypeError, UploadIOError, UploadNotFoundError
)
from ....core.domain.metadata import parse_metadata, validate_metadata
from ....core.interfaces.upload import (
    IBackingStore, IUploadRegistry, OFFSET_OCTET_STREAM, UploadState, UploadStatus
)
from .session import UploadSession
from .writer import ChunkWriter

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1024 * 1024 * 1024  # 1GB


def ensure_offset_content_type(content_type: Optional[str]) -> None:
    """
    Check that a PATCH body is declared as application/offset+octet-stream.

    Raises:
        UnsupportedMediaTypeError: For any other content type
    """
    if content_type != OFFSET_OCTET_STREAM:
        raise UnsupportedMediaTypeError(
            f"Content-Type must be {OFFSET_OCTET_STREAM}, got {content_type!r}")


class UploadRegistry(IUploadRegistry):
    """
    Upload registry service implementation.

    Sessions are kept for the lifetime of the registry; nothing is evicted.
    """

    ID_ALLOCATION_ATTEMPTS = 3

    def __init__(
        self,
        store: IBackingStore,
        writer: ChunkWriter,
        max_size: int = DEFAULT_MAX_SIZE
    ):
        """
        Initialize upload registry.

        Args:
            store: Backing store for upload bytes
            writer: Chunk writer shared by all sessions
            max_size: Largest declared upload size accepted
        """
        self._store = store
        self._writer = writer
        self._max_size = max_size

        self._sessions: Dict[str, UploadSession] = {}
        self._reserved: Set[str] = set()
        self._lock = asyncio.Lock()
        self._running = False

        # Statistics
        self._stats = {
            "created_uploads": 0,
            "failed_creations": 0,
            "appends": 0,
            "conflicts": 0,
            "io_failures": 0
        }

    @property
    def name(self) -> str:
        return "UploadRegistry"

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def chunk_size(self) -> int:
        return self._writer.chunk_size

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, upload_id: object) -> bool:
        return upload_id in self._sessions

    async def start(self) -> None:
        """Start the upload registry service."""
        if self._running:
            return

        await self._store.start()
        self._running = True

        logger.info(
            f"Upload registry started (max size {self._max_size} bytes, "
            f"chunk size {self._writer.chunk_size} bytes)")

    async def stop(self) -> None:
        """Stop the upload registry service."""
        if not self._running:
            return

        self._running = False
        busy = [s.upload_id for s in self._sessions.values() if s.is_locked]
        if busy:
            logger.warning(f"Upload registry stopped with {len(busy)} append(s) in progress")

        logger.info("Upload registry stopped")

    async def check_health(self) -> Dict[str, Any]:
        """Perform health check."""
        by_state = {state.value: 0 for state in UploadState}
        for status in self.list_uploads():
            by_state[status.state.value] += 1

        details: Dict[str, Any] = {
            "running": self._running,
            "max_size": self._max_size,
            "chunk_size": self._writer.chunk_size,
            "uploads_by_state": by_state,
            "statistics": dict(self._stats)
        }
        get_info = getattr(self._store, "get_info", None)
        if callable(get_info):
            details["storage"] = get_info()

        return {
            "healthy": self._running,
            "status": "running" if self._running else "stopped",
            "uploads_total": len(self._sessions),
            "details": details
        }

    async def create(self, declared_size: int, metadata: Optional[str] = None) -> str:
        """Create a new upload session."""
        if declared_size < 0:
            raise InvalidUploadLengthError(f"Upload length must not be negative, got {declared_size}")
        if declared_size > self._max_size:
            raise SizeExceededError(
                f"Upload length {declared_size} exceeds maximum {self._max_size}", self._max_size)

        metadata = metadata or ""
        validate_metadata(metadata)

        upload_id = await self._reserve_id()
        try:
            await self._store.create(upload_id)
        except OSError as e:
            await self._release_id(upload_id)
            self._stats["failed_creations"] += 1
            logger.error(f"Failed to create backing store for upload {upload_id}: {e}")
            raise StorageError(f"Failed to create storage for upload: {e}") from e
        except BaseException:
            await self._release_id(upload_id)
            raise

        session = UploadSession(
            upload_id=upload_id,
            declared_size=declared_size,
            metadata=metadata,
            writer=self._writer
        )
        # the id moves from reserved to registered in one step
        async with self._lock:
            self._reserved.discard(upload_id)
            self._sessions[upload_id] = session
        self._stats["created_uploads"] += 1

        keys = ", ".join(parse_metadata(metadata)) or "none"
        logger.info(f"Created upload session: {upload_id} ({declared_size} bytes, metadata keys: {keys})")

        return upload_id

    def lookup(self, upload_id: str) -> UploadSession:
        """Find a session by identifier."""
        session = self._sessions.get(upload_id)
        if session is None:
            raise UploadNotFoundError(upload_id)
        return session

    def status(self, upload_id: str) -> UploadStatus:
        """Read the last committed state of a session."""
        return self.lookup(upload_id).get_status()

    def list_uploads(self, state: Optional[UploadState] = None) -> List[UploadStatus]:
        """List upload sessions with optional filtering by state."""
        statuses = [session.get_status() for session in list(self._sessions.values())]
        if state is not None:
            statuses = [s for s in statuses if s.state == state]
        return statuses

    async def append(
        self,
        upload_id: str,
        expected_offset: int,
        content_type: Optional[str],
        stream: AsyncIterator[bytes]
    ) -> int:
        """Run the append protocol for one PATCH request."""
        ensure_offset_content_type(content_type)
        session = self.lookup(upload_id)

        self._stats["appends"] += 1
        try:
            return await session.append(expected_offset, stream)
        except OffsetConflictError:
            self._stats["conflicts"] += 1
            raise
        except UploadIOError:
            self._stats["io_failures"] += 1
            raise

    async def _reserve_id(self) -> str:
        async with self._lock:
            for _ in range(self.ID_ALLOCATION_ATTEMPTS):
                upload_id = str(uuid.uuid4())
                if upload_id not in self._sessions and upload_id not in self._reserved:
                    self._reserved.add(upload_id)
                    return upload_id

        self._stats["failed_creations"] += 1
        raise IdAllocationError(
            f"Could not allocate an unused upload id after {self.ID_ALLOCATION_ATTEMPTS} attempts")

    async def _release_id(self, upload_id: str) -> None:
        async with self._lock:
            self._reserved.discard(upload_id)
