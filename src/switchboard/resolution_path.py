"""Tracking of the keys an injector is currently resolving.

The path is pushed before a key's dependencies are resolved and popped once
the key is built or has failed, so at any moment it reflects exactly the
active chain of nested resolutions. Re-entering a key already on the path
means the dependency graph contains a cycle.
"""

from contextlib import contextmanager
from typing import Iterator

from switchboard.errors import CircularDependencyError

__all__ = ["ResolutionPath"]


class ResolutionPath:
    """Ordered stack of keys under resolution, with cycle detection.

    Example:
        >>> path = ResolutionPath()
        >>> with path.entering("a"):
        ...     with path.entering("b"):
        ...         path.keys
        ('a', 'b')
    """

    def __init__(self):
        self._keys: list[str] = []

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(self._keys)

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    @contextmanager
    def entering(self, key: str) -> Iterator[None]:
        """Push ``key`` for the duration of the block.

        Raises:
            CircularDependencyError: If ``key`` is already being resolved. The
                error's cycle runs from the first occurrence of ``key`` back to it.
        """
        if key in self._keys:
            start = self._keys.index(key)
            raise CircularDependencyError(self._keys[start:] + [key])

        self._keys.append(key)
        try:
            yield
        finally:
            self._keys.pop()
