"""Attempt and result records produced by trigger calls."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tick_machine.types import State, Transition


@dataclass(frozen=True)
class ConditionAttempt:
    """One guard evaluation. ``context`` is the snapshot taken before it ran."""

    name: str
    success: bool
    context: Any


@dataclass(frozen=True)
class EffectAttempt:
    """One effect call. ``context`` is the snapshot taken before it ran."""

    name: str
    success: bool
    context: Any


@dataclass(frozen=True)
class TransitionFailure:
    """Why a trigger or jump failed.

    ``undefined`` is True for the kinds caused by something missing
    (transitions, trigger, guard or effect). ``error`` holds the exception an
    effect raised and is only set for ``EffectError``.
    """

    type: str
    trigger: str | None
    method: str | None
    undefined: bool
    context: Any
    error: BaseException | None = None


@dataclass(frozen=True)
class TransitionAttempt:
    """Trace of one candidate transition tried during a trigger call."""

    trigger: str
    transition: Transition
    success: bool
    failure: TransitionFailure | None
    conditions: tuple[ConditionAttempt, ...]
    effects: tuple[EffectAttempt, ...]
    context: Any


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one trigger call, including every attempt made."""

    success: bool
    failure: TransitionFailure | None
    initial_state: State
    current_state: State
    attempts: tuple[TransitionAttempt, ...]
    precontext: Any
    postcontext: Any


@dataclass(frozen=True)
class ConditionStatus:
    name: str
    satisfied: bool


@dataclass(frozen=True)
class AvailableTransition:
    """A transition leaving the current state and whether its guards hold."""

    trigger: str
    origins: tuple[State, ...]
    destination: State
    satisfied: bool
    conditions: tuple[ConditionStatus, ...]
    effects: tuple[str, ...]


@dataclass
class _PendingAttempt:
    """Mutable attempt built during evaluation, frozen when the call returns."""

    trigger: str
    transition: Transition
    context: Any
    success: bool = False
    failure: TransitionFailure | None = None
    conditions: list[ConditionAttempt] = field(default_factory=list)
    effects: list[EffectAttempt] = field(default_factory=list)

    def freeze(self) -> TransitionAttempt:
        return TransitionAttempt(
            trigger=self.trigger,
            transition=self.transition,
            success=self.success,
            failure=self.failure,
            conditions=tuple(self.conditions),
            effects=tuple(self.effects),
            context=self.context,
        )
