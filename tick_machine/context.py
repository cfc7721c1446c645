"""Host context access: state field, method resolution, snapshots."""
from __future__ import annotations

import copy
import functools
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from tick_machine.methods import MethodRegistry


def read_field(context: Any, name: str) -> Any:
    """Read a field from an attribute object or a mutable mapping."""
    if isinstance(context, MutableMapping):
        return context.get(name)
    return getattr(context, name, None)


def write_field(context: Any, name: str, value: Any) -> None:
    if isinstance(context, MutableMapping):
        context[name] = value
    else:
        setattr(context, name, value)


def resolve_method(
    context: Any, name: str, methods: MethodRegistry | None = None,
) -> Callable[..., Any] | None:
    """Return a callable bound to ``context`` for ``name``, or None.

    The registry is consulted first. Attribute objects fall back to their
    own callable members; mapping contexts only resolve through the registry.
    """
    if methods is not None and methods.has(name):
        return functools.partial(methods.get(name), context)
    if isinstance(context, MutableMapping):
        return None
    member = getattr(context, name, None)
    if callable(member):
        return member
    return None


def take_snapshot(
    context: Any, clone: Callable[[Any], Any] | None = None,
) -> Any:
    """Return an independent structural copy of ``context``."""
    if clone is None:
        return copy.deepcopy(context)
    return clone(context)
