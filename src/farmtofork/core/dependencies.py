from typing import Any, Callable, Dict, Type, TypeVar

from flask import current_app

T = TypeVar('T')


class DependencyContainer:
    """Simple dependency injection container"""

    def __init__(self):
        self._services: Dict[str, Any] = {}
        self._factories: Dict[str, Callable] = {}

    def register_singleton(self, service_class: Type[T], instance: T) -> None:
        """Register a singleton instance"""
        key = self._get_service_key(service_class)
        self._services[key] = instance

    def register_factory(self, service_class: Type[T], factory: Callable[[], T]) -> None:
        """Register a factory function; its first result is cached"""
        key = self._get_service_key(service_class)
        self._factories[key] = factory
        self._services.pop(key, None)

    def get(self, service_class: Type[T]) -> T:
        key = self._get_service_key(service_class)

        if key in self._services:
            return self._services[key]

        if key in self._factories:
            instance = self._factories[key]()
            self._services[key] = instance
            return instance

        raise ValueError(f"Service {service_class.__name__} not registered")

    def _get_service_key(self, service_class: Type[T]) -> str:
        return f"{service_class.__module__}.{service_class.__qualname__}"


def build_container() -> DependencyContainer:
    """Wire clients and services. Services resolve their clients lazily."""
    from farmtofork.clients.clerk import ClerkClient
    from farmtofork.clients.mailer import Mailer
    from farmtofork.services import (
        FarmerRequestService,
        ListingService,
        OrderService,
        ProductService,
        ProfileService,
        ReviewService,
    )

    container = DependencyContainer()
    container.register_factory(ClerkClient, ClerkClient)
    container.register_factory(Mailer, Mailer)
    container.register_factory(ProfileService, lambda: ProfileService(container.get(ClerkClient)))
    container.register_factory(ListingService, ListingService)
    container.register_factory(ReviewService, ReviewService)
    container.register_factory(ProductService, ProductService)
    container.register_factory(
        FarmerRequestService,
        lambda: FarmerRequestService(container.get(ClerkClient), container.get(Mailer)),
    )
    container.register_factory(OrderService, OrderService)
    return container


def get_container() -> DependencyContainer:
    """Container of the running Flask app"""
    return current_app.extensions["container"]


def get_service(service_class: Type[T]) -> T:
    return get_container().get(service_class)
