"""
Dependency injection container for managing service instances.

This module provides a lightweight container holding singleton services,
registered either as ready instances or as factories that are called once
on first resolution with the container as their only argument.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ServiceRegistration:
    """Registration information for a service."""

    def __init__(self,
                 service_type: Type[Any],
                 instance: Optional[Any] = None,
                 factory: Optional[Callable[["IContainer"], Any]] = None):
        self.service_type = service_type
        self.instance = instance
        self.factory = factory


class IContainer(ABC):
    """Interface for dependency injection containers."""

    @abstractmethod
    def register_instance(self, service_type: Type[T], instance: T) -> None:
        """
        Register a specific instance as a singleton.

        Args:
            service_type: Interface or base type
            instance: Service instance
        """
        pass

    @abstractmethod
    def register_factory(self, service_type: Type[T], factory: Callable[["IContainer"], T]) -> None:
        """
        Register a factory creating the singleton on first resolution.

        Args:
            service_type: Interface or base type
            factory: Callable receiving the container
        """
        pass

    @abstractmethod
    def resolve(self, service_type: Type[T]) -> T:
        """
        Resolve a service instance.

        Raises:
            ServiceNotRegisteredException: If service not registered
            ServiceResolutionException: If the factory failed
            CircularDependencyException: If factories depend on each other
        """
        pass

    @abstractmethod
    def try_resolve(self, service_type: Type[T]) -> Optional[T]:
        """Try to resolve a service instance without raising exceptions."""
        pass

    @abstractmethod
    def is_registered(self, service_type: Type[Any]) -> bool:
        """Check if a service type is registered."""
        pass

    @abstractmethod
    def get_registrations(self) -> Dict[Type[Any], "ServiceRegistration"]:
        """Get all service registrations."""
        pass


class ServiceNotRegisteredException(Exception):
    """Raised when trying to resolve an unregistered service."""
    pass


class ServiceResolutionException(Exception):
    """Raised when service resolution fails."""
    pass


class CircularDependencyException(Exception):
    """Raised when circular dependencies are detected."""
    pass


class Container(IContainer):
    """Lightweight singleton container with circular dependency detection."""

    def __init__(self) -> None:
        self._services: Dict[Type[Any], ServiceRegistration] = {}
        self._resolution_stack: List[Type[Any]] = []

    def register_instance(self, service_type: Type[T], instance: T) -> None:
        """Register a specific instance as a singleton."""
        self._services[service_type] = ServiceRegistration(service_type, instance=instance)
        logger.debug(f"Registered instance of {service_type.__name__}")

    def register_factory(self, service_type: Type[T], factory: Callable[[IContainer], T]) -> None:
        """Register a factory creating the singleton on first resolution."""
        self._services[service_type] = ServiceRegistration(service_type, factory=factory)
        logger.debug(f"Registered factory for {service_type.__name__}")

    def resolve(self, service_type: Type[T]) -> T:
        """Resolve a service instance."""
        if service_type in self._resolution_stack:
            cycle = " -> ".join([t.__name__ for t in self._resolution_stack] +
                                [service_type.__name__])
            raise CircularDependencyException(
                f"Circular dependency detected: {cycle}")

        registration = self._services.get(service_type)
        if registration is None:
            raise ServiceNotRegisteredException(
                f"Service {service_type.__name__} is not registered")

        if registration.instance is not None:
            return registration.instance  # type: ignore[no-any-return]

        assert registration.factory is not None
        self._resolution_stack.append(service_type)
        try:
            registration.instance = registration.factory(self)
        except (CircularDependencyException, ServiceNotRegisteredException):
            raise
        except Exception as e:
            raise ServiceResolutionException(
                f"Failed to resolve {service_type.__name__}: {str(e)}") from e
        finally:
            self._resolution_stack.pop()

        return registration.instance  # type: ignore[no-any-return]

    def try_resolve(self, service_type: Type[T]) -> Optional[T]:
        """Try to resolve a service instance without raising exceptions."""
        try:
            return self.resolve(service_type)
        except (ServiceNotRegisteredException, ServiceResolutionException, CircularDependencyException):
            return None

    def is_registered(self, service_type: Type[Any]) -> bool:
        """Check if a service type is registered."""
        return service_type in self._services

    def get_registrations(self) -> Dict[Type[Any], ServiceRegistration]:
        """Get all service registrations (for debugging)."""
        return self._services.copy()
