"""
Shared fixtures: an in-memory backing store and payload stream factory.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, List, Optional

import pytest

from cobalt_upload.core.interfaces.upload import IAppendHandle, IBackingStore


class MemoryAppendHandle(IAppendHandle):
    """Append handle writing into a MemoryBackingStore entry."""

    def __init__(self, store: "MemoryBackingStore", upload_id: str) -> None:
        self._store = store
        self._upload_id = upload_id

    async def write(self, data: bytes) -> None:
        if self._store.fail_writes_after is not None and self._store.writes >= self._store.fail_writes_after:
            raise OSError("No space left on device")
        self._store.data[self._upload_id].extend(data)
        self._store.writes += 1
        self._store.block_sizes.append(len(data))


class MemoryBackingStore(IBackingStore):
    """Backing store keeping every upload in a bytearray."""

    def __init__(self) -> None:
        self.data: Dict[str, bytearray] = {}
        self.started = False
        self.fail_create = False
        self.fail_writes_after: Optional[int] = None
        self.writes = 0
        self.block_sizes: List[int] = []

    async def start(self) -> None:
        self.started = True

    async def create(self, upload_id: str) -> None:
        if self.fail_create:
            raise OSError("Read-only file system")
        if upload_id in self.data:
            raise FileExistsError(upload_id)
        self.data[upload_id] = bytearray()

    @asynccontextmanager
    async def open_append(self, upload_id: str) -> AsyncIterator[IAppendHandle]:
        yield MemoryAppendHandle(self, upload_id)


async def _stream(pieces: List[bytes], error: Optional[BaseException]) -> AsyncIterator[bytes]:
    for piece in pieces:
        yield piece
    if error is not None:
        raise error


@pytest.fixture
def memory_store() -> MemoryBackingStore:
    """Fresh in-memory backing store."""
    return MemoryBackingStore()


@pytest.fixture
def make_stream() -> Callable[..., AsyncIterator[bytes]]:
    """
    Build a payload stream: ``make_stream(b"ab", b"cd", error=ConnectionResetError())``
    yields the pieces, then raises the error if one is given.
    """
    def factory(*pieces: bytes, error: Optional[BaseException] = None) -> AsyncIterator[bytes]:
        return _stream(list(pieces), error)

    return factory
