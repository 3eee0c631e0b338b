"""High level entry points for constructing injectors."""

from typing import Iterable, Optional

from switchboard.config import DEFAULT_CONFIG, InjectorConfig
from switchboard.injector import Injector, make_config_injector, make_run_injector
from switchboard.module import ModuleRegistry
from switchboard.module_loader import InjectorHierarchy, ModuleLoader, ModuleRoot
from switchboard.registry import ProviderRegistry

__all__ = ["bootstrap", "make_injector", "make_injectors"]


def bootstrap(
    roots: Iterable[ModuleRoot],
    modules: Optional[ModuleRegistry] = None,
    config: InjectorConfig = DEFAULT_CONFIG,
) -> InjectorHierarchy:
    """Load modules and return both injectors of the resulting hierarchy.

    Args:
        roots: Module names (looked up in ``modules``), modules, or anonymous
            config invokables, loaded in the given order after their requirements.
        modules: Registry of named modules. Required when roots or their
            ``requires`` refer to modules by name.
        config: Strictness and duplicate-registration settings.

    Returns:
        The :class:`InjectorHierarchy` for the loaded modules.

    Raises:
        DependencyError: If loading, configuration or a run block fails.

    Example:
        >>> modules = ModuleRegistry()
        >>> modules.module("A", requires=[]).value("x", 1)
        >>> modules.module("B", requires=["A"]).factory("y", ["x", lambda x: x + 1])
        >>> bootstrap(["B"], modules).run_injector.get("y")
        2
    """
    return ModuleLoader(modules, config).load(roots)


def make_injector(
    roots: Iterable[ModuleRoot],
    modules: Optional[ModuleRegistry] = None,
    config: InjectorConfig = DEFAULT_CONFIG,
) -> Injector:
    """Load modules and return the run-phase injector.

    Arguments are as for :func:`bootstrap`.
    """
    return bootstrap(roots, modules, config).run_injector


def make_injectors(registry: ProviderRegistry) -> InjectorHierarchy:
    """Build the injector pair directly from a populated registry, without modules.

    The registry is finalized: further registrations raise
    :class:`~switchboard.errors.ConfigurationFrozenError`.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.register("greeting", ProviderKind.CONSTANT, "hi")
        >>> make_injectors(registry).run_injector.get("greeting")
        'hi'
    """
    config_injector = make_config_injector(registry)
    run_injector = make_run_injector(registry, config_injector)
    return InjectorHierarchy(config_injector, run_injector, registry, ())
