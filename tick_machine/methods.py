"""MethodRegistry for guards and effects declared outside the host class."""
from __future__ import annotations

from typing import Any, Callable

MethodFn = Callable[..., Any]


class MethodRegistry:
    """Maps guard and effect names to plain functions.

    Functions take the host context as their first argument. Guards are
    called as ``fn(context)``; effects as ``fn(context)`` or
    ``fn(context, props)`` when the trigger was given props.
    """

    def __init__(self) -> None:
        self._methods: dict[str, MethodFn] = {}

    def register(self, name: str, fn: MethodFn) -> None:
        """Register a named method. Overwrites if already registered."""
        self._methods[name] = fn

    def get(self, name: str) -> MethodFn:
        """Look up a method. Raises KeyError if not registered."""
        return self._methods[name]

    def has(self, name: str) -> bool:
        """Check if method name is registered."""
        return name in self._methods

    def names(self) -> list[str]:
        """List all registered method names."""
        return list(self._methods)

    def remove(self, name: str) -> None:
        """Remove a method. Raises KeyError if not registered."""
        if name not in self._methods:
            raise KeyError(name)
        del self._methods[name]
