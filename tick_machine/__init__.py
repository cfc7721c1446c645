"""tick-machine - Declarative state machines attached to plain Python objects."""
from __future__ import annotations

from tick_machine.config import MachineConfig, TransitionOptions
from tick_machine.history import (
    AvailableTransition,
    ConditionAttempt,
    ConditionStatus,
    EffectAttempt,
    TransitionAttempt,
    TransitionFailure,
    TransitionResult,
)
from tick_machine.machine import StateMachine, add_state_machine
from tick_machine.methods import MethodRegistry
from tick_machine.reactive import (
    Observable,
    ReactiveStateMachine,
    add_reactive_state_machine,
    record_changes,
    track_dependencies,
)
from tick_machine.types import FAILURE_TYPES, Transition, TransitionError

__all__ = [
    "StateMachine",
    "add_state_machine",
    "ReactiveStateMachine",
    "add_reactive_state_machine",
    "Observable",
    "track_dependencies",
    "record_changes",
    "Transition",
    "TransitionError",
    "FAILURE_TYPES",
    "MachineConfig",
    "TransitionOptions",
    "MethodRegistry",
    "TransitionResult",
    "TransitionAttempt",
    "TransitionFailure",
    "ConditionAttempt",
    "EffectAttempt",
    "AvailableTransition",
    "ConditionStatus",
]
