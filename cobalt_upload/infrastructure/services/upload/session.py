"""
Upload Session implementation for the Cobalt Upload application.

A session holds the declared size, the committed offset and the raw
metadata of one upload. Appends are serialised by the session's own lock;
status reads take no lock and see the last committed block.
"""

import asyncio
import logging
import time
from typing import AsyncIterator

from ....core.domain.errors import OffsetConflictError
from ....core.interfaces.upload import IUploadSession, UploadState, UploadStatus
from .writer import ChunkWriter

logger = logging.getLogger(__name__)


class UploadSession(IUploadSession):
    """Upload session implementation."""

    def __init__(
        self,
        upload_id: str,
        declared_size: int,
        metadata: str,
        writer: ChunkWriter
    ):
        self._upload_id = upload_id
        self._declared_size = declared_size
        self._metadata = metadata
        self._writer = writer
        self._offset = 0
        self._lock = asyncio.Lock()
        self._created_at = time.time()
        self._updated_at = self._created_at

    @property
    def upload_id(self) -> str:
        return self._upload_id

    @property
    def declared_size(self) -> int:
        return self._declared_size

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def metadata(self) -> str:
        return self._metadata

    @property
    def state(self) -> UploadState:
        return UploadState.derive(self._offset, self._declared_size)

    @property
    def is_locked(self) -> bool:
        """Whether an append is currently running."""
        return self._lock.locked()

    async def append(self, expected_offset: int, stream: AsyncIterator[bytes]) -> int:
        """Append a payload at the expected offset."""
        async with self._lock:
            if expected_offset != self._offset:
                logger.info(
                    f"Rejected append to {self._upload_id}: offset {expected_offset} != {self._offset}")
                raise OffsetConflictError(expected_offset, self._offset)

            start = self._offset
            new_offset = await self._writer.write(self, stream)

            logger.debug(
                f"Appended {new_offset - start} bytes to {self._upload_id} "
                f"({new_offset}/{self._declared_size})")
            if self.state == UploadState.COMPLETE and start < self._declared_size:
                logger.info(f"Upload completed: {self._upload_id} ({self._declared_size} bytes)")

            return new_offset

    def advance(self, length: int) -> None:
        """
        Commit ``length`` more bytes.

        Only the chunk writer calls this, with the session lock held, after
        the bytes have been flushed to the store.
        """
        if length < 0:
            raise ValueError(f"Offset cannot move backwards ({length})")
        self._offset += length
        self._updated_at = time.time()

    def get_status(self) -> UploadStatus:
        return UploadStatus(
            upload_id=self._upload_id,
            offset=self._offset,
            declared_size=self._declared_size,
            metadata=self._metadata,
            state=self.state,
            created_at=self._created_at,
            updated_at=self._updated_at
        )
