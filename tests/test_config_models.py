"""
Tests for configuration models.

This module tests ApplicationConfig and the section dataclasses it is
built from, including validation.
"""

import pytest

from cobalt_upload.infrastructure.config.models import (
    ApplicationConfig, LoggingConfig, ServerConfig, ShutdownConfig, UploadConfig
)


class TestSectionDefaults:
    """Default values of the configuration sections."""

    def test_server_defaults(self) -> None:
        config = ServerConfig()

        assert config.host == "0.0.0.0"
        assert config.port == 1080
        assert config.public_url is None
        assert config.allowed_origins == ["*"]
        assert config.access_log is False

    def test_upload_defaults(self) -> None:
        config = UploadConfig()

        assert config.upload_directory == "upload"
        assert config.max_size == 1024 * 1024 * 1024
        assert config.chunk_size == 1024 * 1024

    def test_shutdown_defaults(self) -> None:
        assert ShutdownConfig().timeout == 30.0

    def test_logging_defaults(self) -> None:
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.console_enabled is True
        assert config.file_enabled is True

    def test_allowed_origins_not_shared(self) -> None:
        first = ServerConfig()
        first.allowed_origins.append("https://example.com")

        assert ServerConfig().allowed_origins == ["*"]


class TestApplicationConfig:
    """Test cases for ApplicationConfig."""

    def test_defaults(self) -> None:
        config = ApplicationConfig()

        assert config.name == "Cobalt Upload"
        assert config.environment == "production"
        assert config.debug is False
        assert config.config_file_path is None

    @pytest.mark.parametrize("port", [0, 1080, 65535])
    def test_valid_ports(self, port: int) -> None:
        assert ApplicationConfig(server=ServerConfig(port=port)).server.port == port

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_invalid_ports(self, port: int) -> None:
        with pytest.raises(ValueError, match="port"):
            ApplicationConfig(server=ServerConfig(port=port))

    @pytest.mark.parametrize("upload", [
        UploadConfig(max_size=0),
        UploadConfig(chunk_size=0),
        UploadConfig(max_size=10, chunk_size=20),
    ])
    def test_invalid_sizes(self, upload: UploadConfig) -> None:
        with pytest.raises(ValueError):
            ApplicationConfig(upload=upload)

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValueError, match="timeout"):
            ApplicationConfig(shutdown=ShutdownConfig(timeout=0))

    def test_round_trip_through_dict(self) -> None:
        config = ApplicationConfig(
            debug=True,
            server=ServerConfig(port=9000, public_url="https://uploads.example.com"),
            upload=UploadConfig(upload_directory="/srv/upload", max_size=4096, chunk_size=512),
            shutdown=ShutdownConfig(timeout=5.0)
        )

        data = config.to_dict()
        restored = ApplicationConfig.from_dict(data)

        assert data["server"]["port"] == 9000
        assert data["upload"]["chunk_size"] == 512
        assert restored == config

    def test_from_dict_partial(self) -> None:
        config = ApplicationConfig.from_dict({"upload": {"max_size": 2048, "chunk_size": 1024}})

        assert config.upload.max_size == 2048
        assert config.server.port == 1080

    def test_from_dict_validates(self) -> None:
        with pytest.raises(ValueError):
            ApplicationConfig.from_dict({"server": {"port": 70000}})
