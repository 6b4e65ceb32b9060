"""
Application layer containing dependency injection and startup logic.

This layer wires the core interfaces to their infrastructure
implementations and manages the component lifecycle.
"""

from .container import Container, IContainer
from .startup import ApplicationStartup

__all__ = [
    "Container",
    "IContainer",
    "ApplicationStartup",
]
