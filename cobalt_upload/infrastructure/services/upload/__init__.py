"""
Upload services: session registry, sessions and the chunk writer.
"""

from .registry import UploadRegistry, ensure_offset_content_type
from .session import UploadSession
from .writer import ChunkWriter

__all__ = [
    "UploadRegistry",
    "UploadSession",
    "ChunkWriter",
    "ensure_offset_content_type",
]
