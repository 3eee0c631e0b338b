"""Domain models used throughout the framework."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Sequence, Union

__all__ = ["Invokable", "ProviderKind", "ProviderDefinition", "Phase"]


Invokable = Union[Callable, Sequence[Union[str, Callable]]]
"""Type alias for anything the injector can call.

Either a bare callable (annotated implicitly or through an attached ``__inject__``
sequence) or an inline-annotated sequence whose last element is the callable.

Example:
    >>> make_greeter                          # bare callable
    >>> ["greeting", make_greeter]            # inline-array form
"""


class ProviderKind(Enum):
    """The closed set of ways a named service can be produced."""

    VALUE = "value"
    CONSTANT = "constant"
    FACTORY = "factory"
    SERVICE = "service"
    PROVIDER = "provider"
    DECORATOR = "decorator"


class Phase(Enum):
    """Lifecycle stage an injector serves."""

    CONFIG = "config"
    RUN = "run"


@dataclass(frozen=True)
class ProviderDefinition:
    """Describes how to produce one named service.

    Attributes:
        name: The service name the definition is registered under.
        kind: How the invokable is turned into an instance.
        invokable: The bare callable (inline annotations stripped), or the stored
            value for ``VALUE`` and ``CONSTANT`` definitions, or the provider object
            for ``PROVIDER`` definitions registered as ready-made objects.
        dependency_keys: The names to inject, in call order.
        decorators: ``DECORATOR`` definitions wrapping this one, oldest first.
    """

    name: str
    kind: ProviderKind
    invokable: Any
    dependency_keys: tuple[str, ...] = ()
    decorators: tuple["ProviderDefinition", ...] = ()

    def decorated_with(self, decorator: "ProviderDefinition") -> "ProviderDefinition":
        return replace(self, decorators=self.decorators + (decorator,))
