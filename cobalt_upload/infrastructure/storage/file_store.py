"""
File backed store for upload bytes.

Each upload gets one append-only file in the upload directory, named after
its identifier.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Union

import aiofiles
import aiofiles.os

from ...core.interfaces.upload import IAppendHandle, IBackingStore

logger = logging.getLogger(__name__)


class FileAppendHandle(IAppendHandle):
    """Append handle over an open aiofiles binary file."""

    def __init__(self, file: Any) -> None:
        self._file = file

    async def write(self, data: bytes) -> None:
        await self._file.write(data)
        await self._file.flush()


class FileBackingStore(IBackingStore):
    """One file per upload under a single directory."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, upload_id: str) -> Path:
        """Path of the file holding an upload's bytes."""
        path = self._directory / upload_id
        if path.parent != self._directory:
            raise ValueError(f"Invalid upload identifier: {upload_id!r}")
        return path

    async def start(self) -> None:
        """Create the upload directory if it does not exist."""
        await aiofiles.os.makedirs(self._directory, exist_ok=True)
        logger.info(f"Upload directory: {self._directory.resolve()}")

    async def create(self, upload_id: str) -> None:
        # 'xb' refuses to reuse a file left over from an earlier run
        async with aiofiles.open(self.path_for(upload_id), 'xb'):
            pass

    @asynccontextmanager
    async def open_append(self, upload_id: str) -> AsyncIterator[IAppendHandle]:
        async with aiofiles.open(self.path_for(upload_id), 'ab') as f:
            yield FileAppendHandle(f)

    def get_info(self) -> Dict[str, Any]:
        return {
            "directory": str(self._directory),
            "exists": self._directory.is_dir(),
            "writable": os.access(self._directory, os.W_OK),
        }
