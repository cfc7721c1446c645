"""Machine-wide configuration and per-call transition options."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class MachineConfig:
    """Immutable configuration for a state machine.

    Attributes:
        verbosity: Print informational lines for returned failures,
            recoverable guard failures, and committed state changes.
        throw_exceptions: Raise ``TransitionError`` on failure instead of
            returning the failed result. Overridable per call.
        strict_origins: Always raise on ``OriginDisallowed``, even when
            exceptions are otherwise disabled.
        state_attr: Name of the host field holding the current state.
        snapshot: Clone function used for context snapshots. Defaults to
            ``copy.deepcopy``.
    """

    verbosity: bool = False
    throw_exceptions: bool = True
    strict_origins: bool = False
    state_attr: str = "state"
    snapshot: Callable[[Any], Any] | None = None


@dataclass(frozen=True)
class TransitionOptions:
    """Per-call overrides for ``trigger``.

    ``on_error(precontext, postcontext)`` runs once when an effect raises,
    before the failure is raised or returned.
    """

    on_error: Callable[[Any, Any], None] | None = None
    throw_exceptions: bool | None = None
