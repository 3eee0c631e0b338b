"""Exceptions raised by the framework.

Every error derives from :class:`DependencyError` so callers can catch the
whole family at a bootstrap boundary.
"""

from typing import Optional, Sequence

__all__ = [
    "DependencyError",
    "AnnotationError",
    "UnknownProviderError",
    "CircularDependencyError",
    "ModuleCycleError",
    "ConfigurationFrozenError",
    "DuplicateProviderError",
    "InvalidProviderError",
    "UnknownModuleError",
]


class DependencyError(Exception):
    """Raised when a component's dependency cannot be resolved or is misannotated."""

    pass


class AnnotationError(DependencyError):
    """Raised when the dependency keys of an invokable cannot be determined."""

    pass


class UnknownProviderError(DependencyError):
    """Raised when a requested name has no visible provider.

    Attributes:
        key: The name that could not be resolved.
        path: The resolution path leading to it, innermost first,
            e.g. ``"missing <- b <- a"``.
    """

    def __init__(self, key: str, requested_by: Sequence[str] = ()):
        self.key = key
        self.path = " <- ".join([key, *reversed(requested_by)])
        super().__init__(f"Unknown provider: {self.path}")


class CircularDependencyError(DependencyError):
    """Raised when resolution revisits a key already on the resolution path.

    Attributes:
        cycle: The keys forming the cycle, starting and ending with the revisited key.
        path: The cycle rendered as ``"a -> b -> a"``.
    """

    def __init__(self, cycle: Sequence[str]):
        self.cycle = tuple(cycle)
        self.path = " -> ".join(self.cycle)
        super().__init__(f"Circular dependency found: {self.path}")


class ModuleCycleError(DependencyError):
    """Raised when the ``requires`` graph of the loaded modules contains a cycle."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle = tuple(cycle)
        super().__init__(f"Circular module requirement: {' -> '.join(self.cycle)}")


class ConfigurationFrozenError(DependencyError):
    """Raised when registering a provider after the run-phase injector was created."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Cannot register '{name}': the registry was finalized into a run-phase injector"
        )


class DuplicateProviderError(DependencyError):
    """Raised when a name is registered twice and duplicates are configured as errors."""

    pass


class InvalidProviderError(DependencyError):
    """Raised when a provider object does not expose a callable ``get``."""

    pass


class UnknownModuleError(DependencyError):
    """Raised when a module is requested by a name nobody registered."""

    def __init__(self, module_name: str, required_by: Optional[str] = None):
        self.module_name = module_name
        self.required_by = required_by
        detail = f" (required by '{required_by}')" if required_by else ""
        super().__init__(f"Module '{module_name}' is not available{detail}")
