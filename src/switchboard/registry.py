"""Registration of provider definitions keyed by service name."""

import inspect
import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from switchboard.annotations import extract_dependency_keys, is_inline_annotated
from switchboard.config import DEFAULT_CONFIG, DuplicatePolicy, InjectorConfig
from switchboard.domain import Invokable, ProviderDefinition, ProviderKind
from switchboard.errors import (
    ConfigurationFrozenError,
    DependencyError,
    DuplicateProviderError,
    InvalidProviderError,
    UnknownProviderError,
)

__all__ = [
    "PROVIDER_SUFFIX",
    "provider_key",
    "provider_get",
    "is_provider_constructor",
    "ProviderRegistry",
    "Registrar",
]

logger = logging.getLogger(__name__)

PROVIDER_SUFFIX = "Provider"


def provider_key(name: str) -> str:
    """Name under which the config phase sees the provider object for ``name``.

    Example:
        >>> provider_key("clock")
        'clockProvider'
    """
    return name + PROVIDER_SUFFIX


def provider_get(name: str, provider_object: Any) -> Callable:
    """Return the ``get`` factory method of a provider object.

    Raises:
        InvalidProviderError: If the object has no callable ``get``.
    """
    get = getattr(provider_object, "get", None)
    if not callable(get):
        raise InvalidProviderError(
            f"Provider '{name}' must define a callable get() factory method, "
            f"got {provider_object!r}"
        )
    return get


def is_provider_constructor(obj: Any) -> bool:
    """True if a ``PROVIDER`` registration must be constructed rather than used as-is."""
    return is_inline_annotated(obj) or inspect.isclass(obj) or inspect.isfunction(obj)


class ProviderRegistry:
    """Registry of provider definitions, mutable until finalized.

    Each name maps to exactly one definition; registering a name again replaces
    the earlier definition, subject to the configured duplicate policy.
    Decorators are the exception: they are attached to the current definition
    instead of replacing it.
    """

    def __init__(self, config: InjectorConfig = DEFAULT_CONFIG):
        self.config = config
        self._definitions: dict[str, ProviderDefinition] = {}
        self._frozen = False
        self._listeners: list[Callable[[str], Any]] = []

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def definitions(self) -> Mapping[str, ProviderDefinition]:
        """Read-only live view of the registered definitions."""
        return MappingProxyType(self._definitions)

    def lookup(self, name: str) -> Optional[ProviderDefinition]:
        return self._definitions.get(name)

    def names(self) -> list[str]:
        return list(self._definitions)

    def __contains__(self, name: str) -> bool:
        return name in self._definitions

    def add_listener(self, listener: Callable[[str], Any]):
        """Call ``listener(name)`` after each non-decorator registration of ``name``."""
        self._listeners.append(listener)

    def register(
        self, name: str, kind: ProviderKind, invokable: Any
    ) -> ProviderDefinition:
        """Register a provider definition.

        Args:
            name: The service name.
            kind: How the invokable produces the service.
            invokable: The value (``VALUE``/``CONSTANT``), provider object or
                constructor (``PROVIDER``), or an invokable in any annotation form.

        Returns:
            The definition now stored under ``name``. For ``DECORATOR`` this is the
            decorated base definition.

        Raises:
            ConfigurationFrozenError: If the registry has been finalized.
            AnnotationError: If the invokable's dependency keys cannot be determined.
            UnknownProviderError: If decorating a name that is not registered.
            DuplicateProviderError: If ``name`` is taken and duplicates are errors.
        """
        if self._frozen:
            raise ConfigurationFrozenError(name)
        if not isinstance(name, str) or not name:
            raise DependencyError(f"Provider name must be a non-empty string, got {name!r}")

        if kind is ProviderKind.DECORATOR:
            return self._decorate(name, invokable)

        definition = self._make_definition(name, kind, invokable)
        self._check_duplicate(name)
        self._definitions[name] = definition
        logger.debug(
            "Registered %s '%s' with dependencies %s",
            kind.value, name, list(definition.dependency_keys),
        )
        for listener in self._listeners:
            listener(name)
        return definition

    def registrar(self) -> "Registrar":
        return Registrar(self)

    def finalize(
        self, provider_object_for: Callable[[str], Any]
    ) -> Mapping[str, ProviderDefinition]:
        """Freeze the registry and produce the definitions seen by the run phase.

        Every ``PROVIDER`` definition is replaced by a ``FACTORY`` built from its
        provider object's ``get`` method, keeping any decorators. All other
        definitions are carried over unchanged.

        Args:
            provider_object_for: Returns the provider object for a provider name,
                normally by resolving it through the config-phase injector.

        Returns:
            A read-only mapping of run-phase definitions.
        """
        self._frozen = True

        run_definitions: dict[str, ProviderDefinition] = {}
        for name, definition in self._definitions.items():
            if definition.kind is ProviderKind.PROVIDER:
                get = provider_get(name, provider_object_for(name))
                func, keys = extract_dependency_keys(get, self.config.strict)
                definition = ProviderDefinition(
                    name, ProviderKind.FACTORY, func, keys, definition.decorators
                )
            run_definitions[name] = definition

        logger.debug("Finalized registry with %d definitions", len(run_definitions))
        return MappingProxyType(run_definitions)

    def _make_definition(
        self, name: str, kind: ProviderKind, invokable: Any
    ) -> ProviderDefinition:
        if kind in (ProviderKind.VALUE, ProviderKind.CONSTANT):
            return ProviderDefinition(name, kind, invokable)

        if kind is ProviderKind.PROVIDER and not is_provider_constructor(invokable):
            provider_get(name, invokable)
            return ProviderDefinition(name, kind, invokable)

        func, keys = extract_dependency_keys(invokable, self.config.strict)
        if kind is ProviderKind.SERVICE and not inspect.isclass(func):
            raise DependencyError(f"Service '{name}': {func} is not a class")
        return ProviderDefinition(name, kind, func, keys)

    def _decorate(self, name: str, invokable: Invokable) -> ProviderDefinition:
        base = self._definitions.get(name)
        if base is None:
            raise UnknownProviderError(name)

        func, keys = extract_dependency_keys(invokable, self.config.strict)
        decorated = base.decorated_with(
            ProviderDefinition(name, ProviderKind.DECORATOR, func, keys)
        )
        self._definitions[name] = decorated
        logger.debug(
            "Decorated '%s' (%d decorators) with dependencies %s",
            name, len(decorated.decorators), list(keys),
        )
        return decorated

    def _check_duplicate(self, name: str):
        if name not in self._definitions:
            return

        policy = self.config.on_duplicate
        if policy is DuplicatePolicy.ERROR:
            raise DuplicateProviderError(f"Duplicate provider name '{name}'")
        if policy is DuplicatePolicy.WARN:
            logger.warning(
                "Provider '%s' registered more than once; the later registration wins",
                name,
            )


class Registrar:
    """Registration surface over a registry, one method per provider kind.

    Config blocks receive a registrar under the injectable name ``provide``,
    so they can keep registering while the configuration phase lasts.

    Example:
        >>> provide = registry.registrar()
        >>> provide.constant("greeting", "hi")
        >>> provide.factory("greeter", ["greeting", make_greeter])
    """

    def __init__(self, registry: ProviderRegistry):
        self._registry = registry

    def value(self, name: str, value: Any) -> ProviderDefinition:
        return self._registry.register(name, ProviderKind.VALUE, value)

    def constant(self, name: str, value: Any) -> ProviderDefinition:
        return self._registry.register(name, ProviderKind.CONSTANT, value)

    def factory(self, name: str, invokable: Invokable) -> ProviderDefinition:
        return self._registry.register(name, ProviderKind.FACTORY, invokable)

    def service(self, name: str, invokable: Invokable) -> ProviderDefinition:
        return self._registry.register(name, ProviderKind.SERVICE, invokable)

    def provider(self, name: str, provider: Any) -> ProviderDefinition:
        return self._registry.register(name, ProviderKind.PROVIDER, provider)

    def decorator(self, name: str, invokable: Invokable) -> ProviderDefinition:
        return self._registry.register(name, ProviderKind.DECORATOR, invokable)
