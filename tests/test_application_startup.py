"""
Tests for application startup and component wiring.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from cobalt_upload.application.container import Container
from cobalt_upload.application.startup import ApplicationStartup
from cobalt_upload.core.interfaces.upload import IBackingStore, IUploadRegistry
from cobalt_upload.infrastructure.config.models import ApplicationConfig, LoggingConfig, UploadConfig
from cobalt_upload.infrastructure.logging.setup import LoggingManager
from cobalt_upload.infrastructure.services.upload.registry import UploadRegistry
from cobalt_upload.infrastructure.services.upload.writer import ChunkWriter
from cobalt_upload.infrastructure.storage.file_store import FileBackingStore


@pytest.fixture
def config(tmp_path) -> ApplicationConfig:
    return ApplicationConfig(
        upload=UploadConfig(upload_directory=str(tmp_path / "upload"), max_size=4096, chunk_size=256),
        logging=LoggingConfig(console_enabled=False, file_enabled=False)
    )


class TestApplicationStartup:
    """Service registration and component lifecycle."""

    def test_configure_services(self, config: ApplicationConfig) -> None:
        container = Container()

        ApplicationStartup(container).configure_services(config)

        assert container.resolve(ApplicationConfig) is config
        assert isinstance(container.resolve(LoggingManager), LoggingManager)

        store = container.resolve(IBackingStore)
        assert isinstance(store, FileBackingStore)
        assert str(store.directory) == config.upload.upload_directory

        writer = container.resolve(ChunkWriter)
        assert writer.chunk_size == 256

        registry = container.resolve(IUploadRegistry)
        assert isinstance(registry, UploadRegistry)
        assert registry.max_size == 4096
        assert registry.chunk_size == 256

    @patch("cobalt_upload.infrastructure.logging.setup.setup_logging")
    async def test_start_and_stop(self, mock_setup_logging: Mock, config: ApplicationConfig, tmp_path) -> None:
        container = Container()
        startup = ApplicationStartup(container)
        startup.configure_services(config)

        await startup.start_application()

        mock_setup_logging.assert_called_once()
        assert [c.name for c in startup.started_components] == ["LoggingManager", "UploadRegistry"]
        assert (tmp_path / "upload").is_dir()
        assert (await container.resolve(IUploadRegistry).check_health())["healthy"] is True

        await startup.stop_application()

        assert startup.started_components == []
        assert (await container.resolve(IUploadRegistry).check_health())["healthy"] is False

    @patch("cobalt_upload.infrastructure.logging.setup.setup_logging")
    async def test_failed_start_stops_started_components(self, mock_setup_logging: Mock,
                                                         config: ApplicationConfig) -> None:
        container = Container()
        startup = ApplicationStartup(container)
        startup.configure_services(config)

        failing = Mock(spec=UploadRegistry)
        failing.name = "UploadRegistry"
        failing.start = AsyncMock(side_effect=PermissionError("upload directory not writable"))
        container.register_instance(IUploadRegistry, failing)

        logging_manager = container.resolve(LoggingManager)
        with patch.object(logging_manager, "stop", AsyncMock()) as mock_stop:
            with pytest.raises(PermissionError):
                await startup.start_application()

            mock_stop.assert_awaited_once()

        assert startup.started_components == []

    async def test_stop_continues_after_error(self, config: ApplicationConfig) -> None:
        container = Container()
        startup = ApplicationStartup(container)
        startup.configure_services(config)

        first = Mock(spec=LoggingManager)
        first.name = "First"
        first.start = AsyncMock()
        first.stop = AsyncMock()
        second = Mock(spec=UploadRegistry)
        second.name = "Second"
        second.start = AsyncMock()
        second.stop = AsyncMock(side_effect=RuntimeError("stuck"))
        container.register_instance(LoggingManager, first)
        container.register_instance(IUploadRegistry, second)

        await startup.start_application()
        await startup.stop_application()

        second.stop.assert_awaited_once()
        first.stop.assert_awaited_once()

    async def test_unregistered_components_are_skipped(self) -> None:
        container = Container()
        registry = Mock(spec=UploadRegistry)
        registry.name = "UploadRegistry"
        registry.start = AsyncMock()
        registry.stop = AsyncMock()
        container.register_instance(IUploadRegistry, registry)
        startup = ApplicationStartup(container)

        await startup.start_application()

        assert not container.is_registered(LoggingManager)
        assert startup.started_components == [registry]
        registry.start.assert_awaited_once()
