"""
Configuration models and data structures.

This module defines the configuration models used throughout the application,
providing type safety and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


DEFAULT_MAX_SIZE = 1024 * 1024 * 1024  # 1 GiB
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB


@dataclass
class ServerConfig:
    """HTTP listener configuration."""
    host: str = "0.0.0.0"
    port: int = 1080
    public_url: Optional[str] = None
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    access_log: bool = False


@dataclass
class UploadConfig:
    """Upload storage and protocol limits."""
    upload_directory: str = "upload"
    max_size: int = DEFAULT_MAX_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass
class ShutdownConfig:
    """Graceful shutdown configuration."""
    timeout: float = 30.0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_directory: str = "logs"
    max_file_size: str = "10MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = True


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    # Basic application settings
    name: str = "Cobalt Upload"
    version: str = "0.1.0"
    debug: bool = False
    environment: str = "production"

    # Component configurations
    server: ServerConfig = field(default_factory=ServerConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_ports()
        self._validate_sizes()
        self._validate_timeouts()

    def _validate_ports(self) -> None:
        """Validate port numbers. Port 0 asks the OS for a free port."""
        if not (0 <= self.server.port <= 65535):
            raise ValueError(
                f"Server port must be between 0 and 65535, got {self.server.port}")

    def _validate_sizes(self) -> None:
        """Validate upload size limits."""
        if self.upload.max_size <= 0:
            raise ValueError(
                f"Maximum upload size must be positive, got {self.upload.max_size}")
        if self.upload.chunk_size <= 0:
            raise ValueError(
                f"Chunk size must be positive, got {self.upload.chunk_size}")
        if self.upload.chunk_size > self.upload.max_size:
            raise ValueError(
                f"Chunk size {self.upload.chunk_size} is larger than the maximum upload size {self.upload.max_size}")

    def _validate_timeouts(self) -> None:
        """Validate timeout values."""
        if self.shutdown.timeout <= 0:
            raise ValueError(
                f"Shutdown timeout must be positive, got {self.shutdown.timeout}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get('name', 'Cobalt Upload'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            environment=data.get('environment', 'production'),
            server=ServerConfig(**data.get('server', {})),
            upload=UploadConfig(**data.get('upload', {})),
            shutdown=ShutdownConfig(**data.get('shutdown', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            config_file_path=data.get('config_file_path')
        )
