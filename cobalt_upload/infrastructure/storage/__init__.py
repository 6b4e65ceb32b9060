"""
Byte storage backends for upload sessions.
"""

from .file_store import FileBackingStore, FileAppendHandle

__all__ = [
    "FileBackingStore",
    "FileAppendHandle",
]
