"""Modules: named bundles of registrations, config blocks and run blocks.

A module records what it wants registered but registers nothing itself; the
:class:`~switchboard.module_loader.ModuleLoader` replays the recorded
registrations into a fresh registry when the module is loaded.

Example:
    >>> modules = ModuleRegistry()
    >>> core = modules.module("core", requires=[])
    >>> core.constant("greeting", "hi")
    >>>
    >>> @core.factory("greeter")
    ... @inject("greeting")
    ... def make_greeter(greeting):
    ...     return Greeter(greeting)
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from switchboard.domain import Invokable, ProviderKind
from switchboard.errors import DependencyError, UnknownModuleError

__all__ = ["Registration", "Module", "ModuleRegistry"]

logger = logging.getLogger(__name__)

_OMITTED = object()


@dataclass(frozen=True)
class Registration:
    """A registration request recorded by a module, replayed at load time."""

    kind: ProviderKind
    name: str
    invokable: Any


class Module:
    """A named unit of configuration.

    Attributes:
        name: Unique module name.
        requires: Names of modules that must be loaded before this one, in order.
        registrations: Recorded registration requests, in declaration order.
        config_blocks: Invokables run by the config-phase injector.
        run_blocks: Invokables run by the run-phase injector.
    """

    def __init__(self, name: str, requires: Iterable[str] = ()):
        if isinstance(requires, str):
            raise DependencyError(
                f"Module '{name}' requires must be a sequence of module names, got {requires!r}"
            )
        self.name = name
        self.requires: tuple[str, ...] = tuple(requires)
        self.registrations: list[Registration] = []
        self.config_blocks: list[Invokable] = []
        self.run_blocks: list[Invokable] = []

    def value(self, name: str, value: Any) -> "Module":
        self.registrations.append(Registration(ProviderKind.VALUE, name, value))
        return self

    def constant(self, name: str, value: Any) -> "Module":
        self.registrations.append(Registration(ProviderKind.CONSTANT, name, value))
        return self

    def factory(self, name: str, invokable: Any = _OMITTED):
        """Record a factory; usable directly or as a decorator.

        Example:
            module.factory("clock", ["tz", make_clock])

            @module.factory("clock")
            @inject("tz")
            def make_clock(tz): ...
        """
        return self._record(ProviderKind.FACTORY, name, invokable)

    def service(self, name: str, invokable: Any = _OMITTED):
        return self._record(ProviderKind.SERVICE, name, invokable)

    def provider(self, name: str, provider: Any = _OMITTED):
        """Record a provider: a constructor, or an object exposing ``get``."""
        return self._record(ProviderKind.PROVIDER, name, provider)

    def decorator(self, name: str, invokable: Any = _OMITTED):
        """Record a decorator for ``name``; the wrapped value is injected as ``delegate``.

        A module's decorators are registered after its other registrations, so
        a decorator may be declared before the provider it wraps.
        """
        return self._record(ProviderKind.DECORATOR, name, invokable)

    def config(self, invokable: Any = _OMITTED):
        return self._block(self.config_blocks, invokable)

    def run(self, invokable: Any = _OMITTED):
        return self._block(self.run_blocks, invokable)

    def _record(self, kind: ProviderKind, name: str, invokable: Any):
        if invokable is None:
            raise DependencyError(f"Module '{self.name}': {kind.value} '{name}' was given None")
        if invokable is not _OMITTED:
            self.registrations.append(Registration(kind, name, invokable))
            return self

        def decorator(obj):
            self.registrations.append(Registration(kind, name, obj))
            return obj

        return decorator

    def _block(self, blocks: list, invokable: Any):
        if invokable is None:
            raise DependencyError(f"Module '{self.name}': a config or run block was given None")
        if invokable is not _OMITTED:
            blocks.append(invokable)
            return self

        def decorator(obj):
            blocks.append(obj)
            return obj

        return decorator

    def __repr__(self) -> str:
        return f"Module({self.name!r}, requires={list(self.requires)!r})"


class ModuleRegistry:
    """Named modules available to a loader. Explicitly constructed, never global."""

    def __init__(self):
        self._modules: dict[str, Module] = {}

    def module(self, name: str, requires: Optional[Iterable[str]] = None) -> Module:
        """Create or retrieve a module.

        With ``requires`` a new module is created, replacing any module of the same
        name. Without it the existing module is returned.

        Raises:
            UnknownModuleError: If retrieving a module that was never created.
        """
        if requires is not None:
            if name in self._modules:
                logger.debug("Replacing module '%s'", name)
            return self.add(Module(name, requires))
        return self[name]

    def add(self, module: Module) -> Module:
        self._modules[module.name] = module
        return module

    def names(self) -> list[str]:
        return list(self._modules)

    def __getitem__(self, name: str) -> Module:
        try:
            return self._modules[name]
        except KeyError:
            raise UnknownModuleError(name) from None

    def __contains__(self, name: str) -> bool:
        return name in self._modules
