"""
Configuration management infrastructure.

This module provides configuration models and loading from files and
environment variables.
"""

from .models import (
    ApplicationConfig, ServerConfig, UploadConfig, ShutdownConfig, LoggingConfig
)
from .loader import ConfigLoader

__all__ = [
    "ApplicationConfig",
    "ServerConfig",
    "UploadConfig",
    "ShutdownConfig",
    "LoggingConfig",
    "ConfigLoader",
]
