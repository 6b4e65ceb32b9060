"""
Infrastructure layer containing external dependencies and I/O operations.

This layer handles configuration, logging, the file backed upload store,
the upload services and the HTTP server.
"""

from .config.loader import ConfigLoader
from .logging.setup import LoggingManager

__all__ = [
    "ConfigLoader",
    "LoggingManager",
]
