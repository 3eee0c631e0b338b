"""Resolution of named services into instances.

An :class:`Injector` resolves a key by looking, in order, at the caller's
scope, its own instance cache and the provider definitions visible in its
phase. Each key is built at most once per injector, unless it was built from
scope values; dependencies are resolved strictly left to right and the first
failure aborts the whole call.

Two phases exist. A config-phase injector only sees constants (by name) and
provider objects (under ``"<name>Provider"``). A run-phase injector sees every
service, with providers already turned into factories by
:meth:`~switchboard.registry.ProviderRegistry.finalize`.
"""

import inspect
import logging
from typing import Any, Callable, Mapping, Optional

from switchboard.annotations import dependency_keys, extract_dependency_keys
from switchboard.config import DEFAULT_CONFIG, InjectorConfig
from switchboard.domain import Invokable, Phase, ProviderDefinition, ProviderKind
from switchboard.errors import DependencyError, UnknownProviderError
from switchboard.registry import (
    PROVIDER_SUFFIX,
    ProviderRegistry,
    is_provider_constructor,
    provider_get,
    provider_key,
)
from switchboard.resolution_path import ResolutionPath

__all__ = [
    "Injector",
    "make_config_injector",
    "make_run_injector",
    "INJECTOR_KEY",
    "REGISTRAR_KEY",
    "DELEGATE_KEY",
]

logger = logging.getLogger(__name__)

INJECTOR_KEY = "injector"
"""Every injector resolves this key to itself."""

REGISTRAR_KEY = "provide"
"""Config-phase injectors resolve this key to the registry's registrar."""

DELEGATE_KEY = "delegate"
"""Decorators receive the value they wrap under this key."""

_NO_SCOPE: Mapping[str, Any] = {}


class Injector:
    """Resolves names to instances and caches one instance per name.

    Args:
        definitions: The provider definitions this injector may draw on. The
            config-phase injector is given the registry's live view so that
            registrations made by config blocks are visible immediately.
        phase: The lifecycle phase this injector serves.
        config: Shared framework configuration.
        builtins: Extra pre-resolved instances, keyed by name.

    Example:
        >>> injector = make_injector(["app"], modules)
        >>> injector.get("greeter").greet()
        'hi'
        >>> injector.invoke(["greeter", lambda greeter: greeter.greet()])
        'hi'
    """

    def __init__(
        self,
        definitions: Mapping[str, ProviderDefinition],
        phase: Phase = Phase.RUN,
        config: InjectorConfig = DEFAULT_CONFIG,
        builtins: Optional[Mapping[str, Any]] = None,
    ):
        self.phase = phase
        self.config = config
        self._definitions = definitions
        self._cache: dict[str, Any] = {INJECTOR_KEY: self}
        self._cache.update(builtins or {})
        self._builtins = frozenset(self._cache)
        self._path = ResolutionPath()
        self._scope_reads = 0

    def get(self, key: str, scope: Optional[Mapping[str, Any]] = None) -> Any:
        """Return the instance named ``key``, building it on first request.

        Args:
            key: The service name.
            scope: Values consulted before the registry for ``key`` and for every
                key resolved transitively during this call. Neither they nor
                anything built from them are cached.

        Raises:
            UnknownProviderError: If ``key`` or one of its dependencies has no
                provider visible in this phase.
            CircularDependencyError: If the dependency graph loops back on itself.
        """
        return self._resolve(key, scope or _NO_SCOPE)

    def invoke(self, fn: Invokable, scope: Optional[Mapping[str, Any]] = None) -> Any:
        """Call ``fn`` with its dependencies and return its result, uncached."""
        func, keys = extract_dependency_keys(fn, self.config.strict)
        return func(*self._arguments(keys, scope or _NO_SCOPE))

    def instantiate(
        self, cls: Invokable, scope: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Construct a new instance of ``cls`` with its dependencies.

        Raises:
            DependencyError: If ``cls`` is not a class.
        """
        func, keys = extract_dependency_keys(cls, self.config.strict)
        if not inspect.isclass(func):
            raise DependencyError(f"{func} is not a class")
        return func(*self._arguments(keys, scope or _NO_SCOPE))

    def has(self, key: str) -> bool:
        """True if ``key`` is cached or has a provider visible in this phase."""
        return key in self._cache or self._definition_for(key) is not None

    def annotate(self, invokable: Invokable) -> tuple[str, ...]:
        """Return the dependency keys of ``invokable`` under this injector's strictness."""
        return dependency_keys(invokable, self.config.strict)

    def forget(self, name: str):
        """Drop the cached instances built from the definition registered as ``name``.

        Both ``name`` and its ``"<name>Provider"`` key are dropped, so the next
        request rebuilds from whatever is registered then. Built-ins are kept.
        """
        for key in (name, provider_key(name)):
            if key not in self._builtins:
                self._cache.pop(key, None)

    def _resolve(self, key: str, scope: Mapping[str, Any]) -> Any:
        if key in scope:
            self._scope_reads += 1
            return scope[key]
        if key in self._cache:
            return self._cache[key]

        definition = self._definition_for(key)
        if definition is None:
            raise UnknownProviderError(key, self._path.keys)

        scope_reads = self._scope_reads
        with self._path.entering(key):
            instance = self._construct(definition, scope)

        # Anything built from a caller's scope values belongs to that call only.
        if self._scope_reads == scope_reads:
            self._cache[key] = instance
        return instance

    def _definition_for(self, key: str) -> Optional[ProviderDefinition]:
        if self.phase is Phase.RUN:
            return self._definitions.get(key)

        if key.endswith(PROVIDER_SUFFIX):
            definition = self._definitions.get(key[: -len(PROVIDER_SUFFIX)])
            if definition is not None and definition.kind is ProviderKind.PROVIDER:
                return definition

        definition = self._definitions.get(key)
        if definition is not None and definition.kind is ProviderKind.CONSTANT:
            return definition
        return None

    def _construct(self, definition: ProviderDefinition, scope: Mapping[str, Any]) -> Any:
        kind = definition.kind
        if kind in (ProviderKind.VALUE, ProviderKind.CONSTANT):
            instance = definition.invokable
        elif kind in (ProviderKind.FACTORY, ProviderKind.SERVICE):
            # Services are classes, so calling them constructs a new object.
            instance = self._call(definition.invokable, definition.dependency_keys, scope)
        elif kind is ProviderKind.PROVIDER:
            instance = self._provider_object(definition, scope)
        else:
            raise DependencyError(
                f"Cannot construct '{definition.name}' from a {kind.value} definition"
            )

        if self.phase is Phase.RUN:
            for decorator in definition.decorators:
                instance = self._call(
                    decorator.invokable,
                    decorator.dependency_keys,
                    scope,
                    {DELEGATE_KEY: instance},
                )

        logger.debug(
            "Instantiated %s '%s' (%s phase)",
            kind.value, definition.name, self.phase.value,
        )
        return instance

    def _provider_object(self, definition: ProviderDefinition, scope: Mapping[str, Any]) -> Any:
        if not is_provider_constructor(definition.invokable):
            return definition.invokable

        provider_object = self._call(definition.invokable, definition.dependency_keys, scope)
        provider_get(definition.name, provider_object)
        return provider_object

    def _call(
        self,
        func: Callable,
        keys: tuple[str, ...],
        scope: Mapping[str, Any],
        direct: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return func(*self._arguments(keys, scope, direct))

    def _arguments(
        self,
        keys: tuple[str, ...],
        scope: Mapping[str, Any],
        direct: Optional[Mapping[str, Any]] = None,
    ) -> list[Any]:
        """Resolve ``keys`` left to right.

        ``direct`` values apply to this call's own keys only, unlike ``scope``
        which is passed down to every nested resolution.
        """
        return [
            direct[key] if direct and key in direct else self._resolve(key, scope)
            for key in keys
        ]

    def __repr__(self) -> str:
        return f"<Injector phase={self.phase.value} cached={len(self._cache)}>"


def make_config_injector(registry: ProviderRegistry) -> Injector:
    """Create the config-phase injector over a registry's live definitions.

    Re-registering a name evicts what the injector cached for it, so later config
    blocks and :func:`make_run_injector` see the latest registration.
    """
    injector = Injector(
        registry.definitions,
        Phase.CONFIG,
        registry.config,
        {REGISTRAR_KEY: registry.registrar()},
    )
    registry.add_listener(injector.forget)
    return injector


def make_run_injector(registry: ProviderRegistry, config_injector: Injector) -> Injector:
    """Finalize ``registry`` and create the run-phase injector.

    Provider objects are obtained through ``config_injector``, so a provider that
    was already resolved during configuration is not constructed again.
    """
    run_definitions = registry.finalize(
        lambda name: config_injector.get(provider_key(name))
    )
    return Injector(run_definitions, Phase.RUN, registry.config)
