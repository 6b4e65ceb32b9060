"""
HTTP serving and graceful shutdown.
"""

from .http import HTTPServer
from .shutdown import RequestTracker, ShutdownCoordinator

__all__ = [
    "HTTPServer",
    "RequestTracker",
    "ShutdownCoordinator",
]
