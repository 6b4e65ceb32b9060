"""
Lifecycle interfaces for long-lived services.

The application startup sequence starts every registered component in a
fixed order and stops them in reverse; the health endpoints ask each one
for its status.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class IStartable(ABC):
    """Something that has to acquire resources before serving."""

    @abstractmethod
    async def start(self) -> None:
        """
        Start the component.

        Raises:
            Exception: If the component cannot acquire its resources.
        """
        pass


class IStoppable(ABC):
    """Something that holds resources until it is stopped."""

    @abstractmethod
    async def stop(self) -> None:
        """Release resources. Calling stop twice must be harmless."""
        pass


class IHealthCheckable(ABC):
    """Something that can report on its own health."""

    @abstractmethod
    async def check_health(self) -> Dict[str, Any]:
        """
        Report health status.

        Returns:
            Dict with at least:
            - 'healthy': bool
            - 'status': str such as 'running' or 'stopped'
            - 'details': Dict with component specific information
        """
        pass


class IComponent(IStartable, IStoppable, IHealthCheckable):
    """Named service managed by the application startup sequence."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the component name."""
        pass
