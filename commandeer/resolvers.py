"""
Instance resolution: a type-keyed registry handing out instances for handlers
and interceptors that declare an `instance` type.

Any object with a `resolve(type) -> instance` method can stand in for
DependencyResolver on an AppRunner.
"""
import logging

logger = logging.getLogger(__name__)


class ResolutionError(LookupError):
    """No instance is registered for the requested type."""


class DependencyResolver:
    """
    Type-keyed instance registry.

    - add(instance): registers `instance` under its own type (no overwrite).
    - add(instance, type): registers it under `type`.
    - resolve(type): the registered instance, or ResolutionError.
    - try_resolve(type, default=None): the registered instance or `default`.
    """

    def __init__(self, *instances):
        self._instances = {}
        for instance in instances:
            self.add(instance)

    def add(self, instance, type=None, /):
        key = type if type is not None else instance.__class__
        if key in self._instances:
            raise ValueError("an instance of %s is already registered" % key.__qualname__)
        self._instances[key] = instance
        return instance

    def resolve(self, type, /):
        try:
            instance = self._instances[type]
        except KeyError:
            raise ResolutionError("dependency not registered: %s" % type.__qualname__) from None
        logger.debug("resolved %s", type.__qualname__)
        return instance

    def try_resolve(self, type, /, default=None):
        return self._instances.get(type, default)

    def __contains__(self, type):
        return type in self._instances

    def __iter__(self):
        return iter(self._instances.values())

    def __len__(self):
        return len(self._instances)


__all__ = (
    "ResolutionError",
    "DependencyResolver",
)
