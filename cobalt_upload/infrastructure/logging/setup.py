"""
Logging setup and configuration utilities.

This module provides centralized logging configuration using loguru
with support for file rotation and structured logging. Modules keep using
``logging.getLogger(__name__)``; their records are forwarded into loguru.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger as loguru_logger

from ..config.models import LoggingConfig
from ...core.interfaces.lifecycle import IComponent


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the logging call
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage())


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup application logging with the given configuration.

    Args:
        config: Logging configuration
    """
    loguru_logger.remove()

    if config.console_enabled:
        loguru_logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                   "<level>{level: <8}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                   "<level>{message}</level>",
            level=config.level,
            colorize=True,
            backtrace=True,
            diagnose=False
        )

    if config.file_enabled:
        log_dir = Path(config.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)

        loguru_logger.add(
            log_dir / "app.log",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                   "{name}:{function}:{line} - {message}",
            level=config.level,
            rotation=config.max_file_size,
            retention=config.backup_count,
            compression="zip",
            backtrace=True,
            diagnose=False
        )

    _intercept_standard_logging(config.level)


def _intercept_standard_logging(level: str) -> None:
    """Route the root logger and uvicorn's loggers through loguru."""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [InterceptHandler()]
        uvicorn_logger.propagate = False


class LoggingManager(IComponent):
    """
    Component that installs the loguru sinks at startup.

    Also offers helpers that tag records with structured context, such as
    the request id and duration attached by the timing middleware.
    """

    def __init__(self, config: Dict[str, Any]) -> None:
        self._config = LoggingConfig(**config)
        self._started = False
        self._logger = logging.getLogger(__name__)

    @property
    def name(self) -> str:
        """Get component name."""
        return "LoggingManager"

    async def start(self) -> None:
        """Start the logging manager."""
        if self._started:
            return

        setup_logging(self._config)
        self._started = True

        self._logger.info(f"Log level: {self._config.level}")
        if self._config.file_enabled:
            self._logger.info(f"Log directory: {self._config.log_directory}")

    async def stop(self) -> None:
        """Stop the logging manager."""
        if not self._started:
            return

        self._logger.info("Logging manager stopped")
        await loguru_logger.complete()
        self._started = False

    async def check_health(self) -> Dict[str, Any]:
        """Check logging manager health."""
        log_dir = Path(self._config.log_directory)

        return {
            'healthy': True,
            'status': 'running' if self._started else 'stopped',
            'details': {
                'log_level': self._config.level,
                'log_directory': str(log_dir),
                'log_directory_exists': log_dir.exists(),
                'console_enabled': self._config.console_enabled,
                'file_enabled': self._config.file_enabled
            }
        }

    def log_access(self, message: str, **kwargs: Any) -> None:
        """Log one handled request at INFO, tagged access_log."""
        loguru_logger.bind(access_log=True, **kwargs).info(message)

    def log_performance(self, message: str, **kwargs: Any) -> None:
        """Log request timing at DEBUG, tagged performance_log."""
        loguru_logger.bind(performance_log=True, **kwargs).debug(message)

    def log_error(self, message: str, error: Optional[Exception] = None, **kwargs: Any) -> None:
        """Log an error; when error is given its traceback is attached."""
        if error:
            loguru_logger.bind(**kwargs).opt(exception=error).error(f"{message}: {error}")
        else:
            loguru_logger.bind(**kwargs).error(message)
