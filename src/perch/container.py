"""Service container — string ids mapped to lazily built singletons.

Factories receive the container so services can pull their own
dependencies. Each service is constructed once, on first ``get()``,
and cached for the lifetime of the container.

Usage::

    container = Container()
    container.register("config", lambda c: AppConfig())
    container.register("mailer", lambda c: MailerService())
    container.freeze()

    mailer = container.get("mailer")
"""

import inspect
import threading
from collections.abc import Callable
from typing import Any

from perch.errors import ConfigurationError

type Factory = Callable[[Container], Any] | Callable[[], Any]


class Container:
    """Registry of service factories keyed by id."""

    __slots__ = ("_factories", "_frozen", "_instances", "_lock")

    def __init__(self) -> None:
        self._factories: dict[str, Factory] = {}
        self._instances: dict[str, Any] = {}
        self._frozen = False
        self._lock = threading.RLock()

    def register(self, service_id: str, factory: Factory) -> None:
        """Register *factory* under *service_id*.

        The factory takes either no arguments or the container itself.
        Re-registering an id replaces the previous factory.
        """
        if self._frozen:
            msg = f"Cannot register {service_id!r}: container is frozen."
            raise RuntimeError(msg)
        self._factories[service_id] = factory
        self._instances.pop(service_id, None)

    def set(self, service_id: str, instance: Any) -> None:
        """Register an already-built *instance* under *service_id*."""
        self.register(service_id, lambda: instance)

    def has(self, service_id: str) -> bool:
        """Whether *service_id* is registered."""
        return service_id in self._factories

    def get(self, service_id: str) -> Any:
        """Return the service for *service_id*, building it on first use."""
        try:
            return self._instances[service_id]
        except KeyError:
            pass

        with self._lock:
            if service_id in self._instances:
                return self._instances[service_id]
            factory = self._factories.get(service_id)
            if factory is None:
                msg = f"Unknown service id {service_id!r}"
                raise ConfigurationError(msg)
            instance = _call_factory(factory, self)
            self._instances[service_id] = instance
            return instance

    def freeze(self) -> None:
        """Forbid further registration."""
        self._frozen = True

    @property
    def ids(self) -> list[str]:
        """Registered ids, in registration order."""
        return list(self._factories)


def _call_factory(factory: Factory, container: Container) -> Any:
    try:
        params = inspect.signature(factory).parameters
    except (TypeError, ValueError):
        return factory(container)  # type: ignore[call-arg]
    if params:
        return factory(container)  # type: ignore[call-arg]
    return factory()  # type: ignore[call-arg]
