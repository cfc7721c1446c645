"""Transition descriptors, failure kinds, and the transition error."""
from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Union

if TYPE_CHECKING:
    from tick_machine.history import TransitionResult

State = Hashable

FailureType = Literal[
    "TransitionsUndefined",
    "TriggerUndefined",
    "OriginDisallowed",
    "ConditionUndefined",
    "ConditionValue",
    "EffectUndefined",
    "EffectError",
    "DestinationInvalid",
]

FAILURE_TYPES: tuple[str, ...] = (
    "TransitionsUndefined",
    "TriggerUndefined",
    "OriginDisallowed",
    "ConditionUndefined",
    "ConditionValue",
    "EffectUndefined",
    "EffectError",
    "DestinationInvalid",
)


def _as_tuple(value: Any) -> tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(value)
    return (value,)


@dataclass(frozen=True)
class Transition:
    """One candidate rule under a trigger.

    ``origins``, ``conditions`` and ``effects`` accept a single value or a
    list and are stored as tuples. Conditions and effects are method names
    resolved against the host context when the trigger fires.
    """

    origins: tuple[State, ...]
    destination: State
    conditions: tuple[str, ...] = ()
    effects: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "origins", _as_tuple(self.origins))
        object.__setattr__(self, "conditions", _as_tuple(self.conditions))
        object.__setattr__(self, "effects", _as_tuple(self.effects))
        if not self.origins:
            raise ValueError("Transition origins must be non-empty")


TransitionDict = Mapping[str, Union[Transition, Mapping[str, Any], Sequence[Any]]]
StateList = Sequence[State]


class TransitionError(Exception):
    """Raised when a trigger or direct jump fails.

    ``type`` is the failure kind, ``result`` the partial transition result
    (``None`` for failures that happen outside a trigger call).
    """

    def __init__(
        self,
        type: str,
        message: str,
        result: TransitionResult | None = None,
    ) -> None:
        self.type = type
        self.message = f"{type}: {message}"
        self.result = result
        super().__init__(self.message)
