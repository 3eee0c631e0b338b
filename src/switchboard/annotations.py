"""Extraction of dependency keys from invokables.

Three annotation forms are recognised, in order of precedence:

1. Inline array: ``["db", "cache", make_service]``. The leading strings are the
   keys, the final element is the callable.
2. Attached keys: a ``__inject__`` sequence on the callable itself, usually set
   with the :func:`inject` decorator. Authoritative regardless of the callable's
   parameter count.
3. Implicit: the callable's positional parameter names. Only honoured when
   ``strict`` is False, since parameter names do not survive renaming.

Example:
    >>> @inject("greeting")
    ... def make_greeter(g):
    ...     return Greeter(g)
    >>> extract_dependency_keys(make_greeter)
    (<function make_greeter>, ('greeting',))
    >>> dependency_keys(["greeting", make_greeter])
    ('greeting',)
"""

import inspect
from typing import Any, Callable, Sequence

from switchboard.domain import Invokable
from switchboard.errors import AnnotationError

__all__ = [
    "INJECT_ATTRIBUTE",
    "inject",
    "extract_dependency_keys",
    "dependency_keys",
    "is_inline_annotated",
]

INJECT_ATTRIBUTE = "__inject__"

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def inject(*keys: str) -> Callable:
    """Decorator attaching an ordered list of dependency keys to a callable.

    Args:
        keys: Names of the services to inject, in positional order.

    Returns:
        A decorator that sets ``__inject__`` on its target and returns it unchanged.

    Example:
        @inject("db", "cache")
        class UserService:
            def __init__(self, db, cache): ...
    """
    def decorator(obj):
        setattr(obj, INJECT_ATTRIBUTE, _validated_keys(keys, obj))
        return obj

    return decorator


def is_inline_annotated(invokable: Any) -> bool:
    return isinstance(invokable, (list, tuple))


def extract_dependency_keys(
    invokable: Invokable, strict: bool = True
) -> tuple[Callable, tuple[str, ...]]:
    """Split an invokable into its bare callable and its dependency keys.

    Args:
        invokable: A callable, or an inline-annotated sequence ending in a callable.
        strict: If True, refuse to infer keys from parameter names.

    Returns:
        A ``(callable, keys)`` pair. The callable has any inline annotation stripped.

    Raises:
        AnnotationError: If the keys are malformed, the target is not callable, or
            the callable declares parameters without annotation in strict mode.
    """
    if is_inline_annotated(invokable):
        return _from_inline_array(invokable)

    if not callable(invokable):
        raise AnnotationError(f"{invokable!r} is not callable")

    attached = getattr(invokable, INJECT_ATTRIBUTE, None)
    if attached is not None:
        return invokable, _validated_keys(attached, invokable)

    return invokable, _parameter_names(invokable, strict)


def dependency_keys(invokable: Invokable, strict: bool = True) -> tuple[str, ...]:
    """Return only the dependency keys of an invokable."""
    return extract_dependency_keys(invokable, strict)[1]


def _from_inline_array(annotated: Sequence) -> tuple[Callable, tuple[str, ...]]:
    if len(annotated) == 0:
        raise AnnotationError("Inline annotation is empty: expected [key, ..., callable]")

    *keys, func = annotated
    if not callable(func):
        raise AnnotationError(
            f"Last element of inline annotation {list(annotated)!r} is not callable"
        )
    return func, _validated_keys(keys, func)


def _validated_keys(keys: Any, target: Any) -> tuple[str, ...]:
    if isinstance(keys, str) or not isinstance(keys, Sequence):
        raise AnnotationError(
            f"Dependency keys of {_describe(target)} must be a sequence of strings, got {keys!r}"
        )
    bad = [key for key in keys if not isinstance(key, str)]
    if bad:
        raise AnnotationError(
            f"Dependency keys of {_describe(target)} must be strings, got {bad!r}"
        )
    return tuple(keys)


def _parameter_names(func: Callable, strict: bool) -> tuple[str, ...]:
    """Derive keys from the positional parameters of a callable's signature.

    For classes the signature of the constructor is used, so ``self`` is never
    included; bound methods likewise omit their receiver.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures take no injected arguments.
        return ()

    names = []
    for name, parameter in sig.parameters.items():
        if parameter.kind in _POSITIONAL:
            names.append(name)
        elif (
            parameter.kind is inspect.Parameter.KEYWORD_ONLY
            and parameter.default is inspect.Parameter.empty
        ):
            raise AnnotationError(
                f"{_describe(func)} has required keyword-only parameter '{name}'; "
                "dependencies are supplied positionally"
            )

    if names and strict:
        raise AnnotationError(
            f"{_describe(func)} is not using explicit annotation and cannot be invoked "
            f"in strict mode: annotate it inline or with @inject({', '.join(map(repr, names))})"
        )
    return tuple(names)


def _describe(target: Any) -> str:
    return getattr(target, "__qualname__", None) or repr(target)
