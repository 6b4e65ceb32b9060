"""
Chunk writer for upload payloads.

The payload stream arrives in pieces of whatever size the transport hands
over. The writer re-blocks it into blocks of at most ``chunk_size`` bytes,
appends each block to the backing store and advances the session offset
after every block, so the offset always matches what is on disk.
"""

import logging
from typing import TYPE_CHECKING, AsyncIterator

from ....core.domain.errors import UploadIOError
from ....core.interfaces.upload import IAppendHandle, IBackingStore

if TYPE_CHECKING:
    from .session import UploadSession

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB


class ChunkWriter:
    """Streams payloads into the backing store in bounded blocks."""

    def __init__(self, store: IBackingStore, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._store = store
        self._chunk_size = chunk_size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    async def write(self, session: "UploadSession", stream: AsyncIterator[bytes]) -> int:
        """
        Append a payload to a session.

        The caller must hold the session lock.

        Args:
            session: Session to append to
            stream: Payload pieces

        Returns:
            The session offset after the payload

        Raises:
            UploadIOError: If the stream broke or the store failed; blocks
                written before the failure stay committed
        """
        try:
            async with self._store.open_append(session.upload_id) as handle:
                await self._copy(session, stream, handle)
        except OSError as e:
            # opening or closing the store entry failed
            raise UploadIOError(
                f"Storage error for upload {session.upload_id}: {e}", session.offset) from e

        return session.offset

    async def _copy(self, session: "UploadSession", stream: AsyncIterator[bytes], handle: IAppendHandle) -> None:
        buffer = bytearray()
        iterator = stream.__aiter__()

        while True:
            try:
                piece = await iterator.__anext__()
            except StopAsyncIteration:
                break
            except Exception as e:
                # keep whatever arrived before the stream broke
                await self._flush(session, handle, buffer)
                logger.warning(
                    f"Payload stream for upload {session.upload_id} broke at offset {session.offset}: {e!r}")
                raise UploadIOError(
                    f"Error reading payload for upload {session.upload_id}: {e}", session.offset) from e

            if not piece:
                continue

            buffer.extend(piece)
            while len(buffer) >= self._chunk_size:
                block = bytes(buffer[:self._chunk_size])
                del buffer[:self._chunk_size]
                await self._write_block(session, handle, block)

        await self._flush(session, handle, buffer)

    async def _flush(self, session: "UploadSession", handle: IAppendHandle, buffer: bytearray) -> None:
        while buffer:
            block = bytes(buffer[:self._chunk_size])
            del buffer[:self._chunk_size]
            await self._write_block(session, handle, block)

    async def _write_block(self, session: "UploadSession", handle: IAppendHandle, block: bytes) -> None:
        try:
            await handle.write(block)
        except OSError as e:
            logger.error(
                f"Failed to write {len(block)} bytes for upload {session.upload_id} at offset {session.offset}: {e}")
            raise UploadIOError(
                f"Error writing data for upload {session.upload_id}: {e}", session.offset) from e

        session.advance(len(block))
