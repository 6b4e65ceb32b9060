"""
Application startup and configuration logic.

This module registers the application components with the DI container and
starts them in dependency order.
"""

import logging
from typing import List, Type

from .container import IContainer
from ..core.interfaces.lifecycle import IComponent, IStartable, IStoppable
from ..core.interfaces.upload import IBackingStore, IUploadRegistry
from ..infrastructure.config.models import ApplicationConfig
from ..infrastructure.logging.setup import LoggingManager
from ..infrastructure.services.upload.registry import UploadRegistry
from ..infrastructure.services.upload.writer import ChunkWriter
from ..infrastructure.storage.file_store import FileBackingStore

logger = logging.getLogger(__name__)


class ApplicationStartup:
    """
    Manages application startup and service configuration.

    The backing store is started by the upload registry, so only the
    components listed in the startup order are started here.
    """

    def __init__(self, container: IContainer) -> None:
        self._container = container
        self._started_components: List[IComponent] = []
        self._startup_order: List[Type[IComponent]] = [
            LoggingManager,
            IUploadRegistry,  # type: ignore[type-abstract]
        ]

    @property
    def started_components(self) -> List[IComponent]:
        return list(self._started_components)

    def configure_services(self, config: ApplicationConfig) -> None:
        """
        Register all application services.

        Args:
            config: Application configuration
        """
        logger.info("Configuring application services...")

        self._container.register_instance(ApplicationConfig, config)
        self._container.register_instance(
            LoggingManager, LoggingManager(config.to_dict()['logging']))

        self._container.register_factory(
            IBackingStore,  # type: ignore[type-abstract]
            lambda c: FileBackingStore(config.upload.upload_directory))
        self._container.register_factory(
            ChunkWriter,
            lambda c: ChunkWriter(
                c.resolve(IBackingStore),  # type: ignore[type-abstract]
                chunk_size=config.upload.chunk_size))
        self._container.register_factory(
            IUploadRegistry,  # type: ignore[type-abstract]
            lambda c: UploadRegistry(
                c.resolve(IBackingStore),  # type: ignore[type-abstract]
                c.resolve(ChunkWriter),
                max_size=config.upload.max_size))

        logger.info("Service configuration completed")

    async def start_application(self) -> None:
        """
        Start all application components in order.

        If a component fails to start, the ones already started are stopped
        again and the error is re-raised.
        """
        logger.info("Starting application components...")

        for service_type in self._startup_order:
            if not self._container.is_registered(service_type):
                logger.debug(f"Skipping unregistered component: {service_type.__name__}")
                continue

            component = self._container.resolve(service_type)
            try:
                if isinstance(component, IStartable):
                    logger.debug(f"Starting component: {component.name}")
                    await component.start()
                    self._started_components.append(component)
                    logger.info(f"Started component: {component.name}")

            except Exception as e:
                logger.error(f"Failed to start component {component.name}: {e}")
                await self.stop_application()
                raise

        logger.info("Application startup completed successfully")

    async def stop_application(self) -> None:
        """Stop all started components in reverse order."""
        if not self._started_components:
            return

        logger.info("Stopping application components...")

        for component in reversed(self._started_components):
            try:
                if isinstance(component, IStoppable):
                    logger.debug(f"Stopping component: {component.name}")
                    await component.stop()
                    logger.info(f"Stopped component: {component.name}")

            except Exception as e:
                # keep stopping the rest
                logger.error(f"Error stopping component {component.name}: {e}")

        self._started_components.clear()
        logger.info("Application shutdown completed")
