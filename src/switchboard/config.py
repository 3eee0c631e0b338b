"""Settings shared by registries, injectors and the module loader."""

from dataclasses import dataclass
from enum import Enum

__all__ = ["DuplicatePolicy", "InjectorConfig", "DEFAULT_CONFIG"]


class DuplicatePolicy(Enum):
    """What to do when a name is registered a second time."""

    OVERRIDE = "override"
    """Silently replace the earlier definition."""

    WARN = "warn"
    """Log a warning, then replace the earlier definition."""

    ERROR = "error"
    """Raise :class:`~switchboard.errors.DuplicateProviderError`."""


@dataclass(frozen=True)
class InjectorConfig:
    """Configuration for one bootstrap.

    Attributes:
        strict: If True (default), invokables that declare parameters must carry
            explicit dependency keys, either inline (``["a", "b", fn]``) or attached
            via :func:`~switchboard.annotations.inject`. If False, parameter names
            are used as keys when no explicit annotation is present.
        on_duplicate: Policy applied when a provider name is registered twice.
    """

    strict: bool = True
    on_duplicate: DuplicatePolicy = DuplicatePolicy.OVERRIDE


DEFAULT_CONFIG = InjectorConfig()
