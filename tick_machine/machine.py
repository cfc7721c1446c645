"""StateMachine engine and the add_state_machine factory.

Guards are called with no arguments. Effects are called with the trigger's
props when props were given and with no arguments otherwise, so effects that
accept props should default them (``props=None``).
"""
from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Generic, TypeVar, Union

from tick_machine.config import MachineConfig, TransitionOptions
from tick_machine.context import read_field, resolve_method, take_snapshot, write_field
from tick_machine.history import (
    AvailableTransition,
    ConditionAttempt,
    ConditionStatus,
    EffectAttempt,
    TransitionFailure,
    TransitionResult,
    _PendingAttempt,
)
from tick_machine.methods import MethodRegistry
from tick_machine.types import State, Transition, TransitionDict, TransitionError

T = TypeVar("T")

Blueprint = Union[TransitionDict, Iterable[State]]

_UNDEFINED_KINDS = frozenset({
    "TransitionsUndefined",
    "TriggerUndefined",
    "ConditionUndefined",
    "EffectUndefined",
})

_MISSING: Any = object()


def _to_transition(item: Any) -> Transition:
    if isinstance(item, Transition):
        return item
    if isinstance(item, Mapping):
        return Transition(**item)
    raise TypeError(f"Expected a Transition, got {type(item).__name__}")


def _normalize_dictionary(dictionary: TransitionDict) -> dict[str, tuple[Transition, ...]]:
    """Copy a transition dictionary into trigger -> tuple of Transition."""
    normalized: dict[str, tuple[Transition, ...]] = {}
    for trigger, entry in dictionary.items():
        if isinstance(entry, (Transition, Mapping)):
            items: Sequence[Any] = (entry,)
        elif isinstance(entry, Sequence) and not isinstance(entry, str):
            items = entry
        else:
            raise TypeError(
                f"Trigger {trigger!r} must map to a Transition or a sequence of them"
            )
        normalized[trigger] = tuple(_to_transition(item) for item in items)
    return normalized


def _collect_states(transitions: Mapping[str, tuple[Transition, ...]]) -> tuple[State, ...]:
    """Union of every origin and destination, in first-seen order."""
    states: dict[State, None] = {}
    for candidates in transitions.values():
        for transition in candidates:
            for origin in transition.origins:
                states.setdefault(origin, None)
            states.setdefault(transition.destination, None)
    return tuple(states)


@dataclass
class _Call:
    """Bookkeeping for one in-flight trigger call."""

    trigger: str
    precontext: Any
    initial_state: State
    throw: bool
    attempts: list[_PendingAttempt] = field(default_factory=list)


class StateMachine(Generic[T]):
    """Declarative state machine attached to a host context.

    The host keeps the current state in one field (``state`` by default) and
    exposes guards and effects as callable members, or through a
    ``MethodRegistry``. The machine never holds its own copy of the state:
    every read and write goes to the host.

    ``blueprint`` is either a transition dictionary (trigger -> Transition or
    list of Transitions) or a plain list of states. Without a dictionary only
    ``to()`` is usable.
    """

    def __init__(
        self,
        context: T,
        blueprint: Blueprint,
        config: MachineConfig | None = None,
        methods: MethodRegistry | None = None,
    ) -> None:
        self._context = context
        self._config: MachineConfig = config if config is not None else MachineConfig()
        self._methods = methods
        self._transitions: Mapping[str, tuple[Transition, ...]] | None
        if isinstance(blueprint, Mapping):
            normalized = _normalize_dictionary(blueprint)
            self._transitions = MappingProxyType(normalized)
            self._states: tuple[State, ...] = _collect_states(normalized)
        else:
            self._transitions = None
            self._states = tuple(dict.fromkeys(blueprint))

    @property
    def context(self) -> T:
        """The host object this machine is attached to."""
        return self._context

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def methods(self) -> MethodRegistry | None:
        return self._methods

    @property
    def transitions(self) -> Mapping[str, tuple[Transition, ...]] | None:
        """Read-only trigger -> candidates mapping, or None without a dictionary."""
        return self._transitions

    @property
    def states(self) -> tuple[State, ...]:
        """Known states, used to validate ``to()``."""
        return self._states

    @property
    def state(self) -> State:
        """Current state, read from the host."""
        return read_field(self._context, self._config.state_attr)

    # ------------------------------------------------------------------
    # Direct jump
    # ------------------------------------------------------------------

    def to(self, state: State) -> None:
        """Jump to ``state`` without guards or effects.

        Raises ``TransitionError`` (``DestinationInvalid``) for unknown
        states, whatever ``throw_exceptions`` is set to.
        """
        if state not in self._states:
            raise TransitionError(
                "DestinationInvalid",
                f"Destination {state!r} is not included in the list of existing states",
            )
        self._commit_state(state)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def trigger_with_options(
        self,
        trigger: str,
        props_or_options: Any,
        options: TransitionOptions | None = _MISSING,
    ) -> TransitionResult:
        """Call ``trigger`` as ``(trigger, options)`` or ``(trigger, props, options)``."""
        if options is _MISSING:
            return self.trigger(trigger, None, props_or_options)
        return self.trigger(trigger, props_or_options, options)

    def trigger(
        self,
        trigger: str,
        props: Any = None,
        options: TransitionOptions | None = None,
    ) -> TransitionResult:
        """Fire ``trigger`` and return the full record of the call.

        Candidates are tried in declaration order. A false guard falls back
        to the next candidate; every other failure ends the call. Effects run
        only after all guards of their candidate passed.

        ``props`` is passed to each effect only when it is not None; without
        props every effect is called with no arguments. An effect that takes
        props therefore needs a default (``def melt(self, props=None)``), or
        the call fails with ``EffectError``.
        """
        opts = options if options is not None else TransitionOptions()
        throw = (
            opts.throw_exceptions
            if opts.throw_exceptions is not None
            else self._config.throw_exceptions
        )
        call = _Call(
            trigger=trigger,
            precontext=self._snapshot(),
            initial_state=self.state,
            throw=throw,
        )

        if self._transitions is None:
            return self._fail(
                call,
                self._failure(call, "TransitionsUndefined"),
                f"trigger({trigger!r}) called, but machine does not have transitions defined.",
            )

        candidates = self._transitions.get(trigger, ())
        if not candidates:
            return self._fail(
                call,
                self._failure(call, "TriggerUndefined"),
                f"Trigger {trigger!r} is not defined in the machine.",
            )

        origins = {origin for candidate in candidates for origin in candidate.origins}
        if self.state not in origins:
            return self._fail(
                call,
                self._failure(call, "OriginDisallowed"),
                f"Invalid transition from {self.state!r} using trigger {trigger!r}",
                always_raise=self._config.strict_origins,
            )

        for index, transition in enumerate(candidates):
            is_last = index == len(candidates) - 1
            attempt = _PendingAttempt(
                trigger=trigger, transition=transition, context=self._snapshot(),
            )
            call.attempts.append(attempt)

            guards_passed = True
            for name in transition.conditions:
                snapshot = self._snapshot()
                condition = resolve_method(self._context, name, self._methods)
                if condition is None:
                    attempt.conditions.append(ConditionAttempt(name, False, snapshot))
                    attempt.failure = self._failure(call, "ConditionUndefined", method=name)
                    return self._fail(
                        call, attempt.failure,
                        f"Condition {name!r} is not defined in the machine.",
                    )
                if not condition():
                    attempt.conditions.append(ConditionAttempt(name, False, snapshot))
                    attempt.failure = self._failure(call, "ConditionValue", method=name)
                    message = f"Condition {name!r} false, transition aborted."
                    if is_last:
                        return self._fail(call, attempt.failure, message)
                    self._log(message)
                    guards_passed = False
                    break
                attempt.conditions.append(ConditionAttempt(name, True, snapshot))

            if not guards_passed:
                continue

            for name in transition.effects:
                snapshot = self._snapshot()
                effect = resolve_method(self._context, name, self._methods)
                if effect is None:
                    attempt.effects.append(EffectAttempt(name, False, snapshot))
                    attempt.failure = self._failure(call, "EffectUndefined", method=name)
                    return self._fail(
                        call, attempt.failure,
                        f"Effect {name!r} is not defined in the machine.",
                    )
                try:
                    if props is None:
                        effect()
                    else:
                        effect(props)
                except Exception as exc:
                    attempt.effects.append(EffectAttempt(name, False, snapshot))
                    attempt.failure = self._failure(
                        call, "EffectError", method=name, error=exc,
                    )
                    return self._fail(
                        call, attempt.failure,
                        f"Effect {name!r} caused an error: {exc}",
                        on_error=opts.on_error,
                    )
                attempt.effects.append(EffectAttempt(name, True, snapshot))

            self._commit_state(transition.destination)
            self._log(f"State changed to {transition.destination!r}")
            attempt.success = True
            break

        return self._result(call, None)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_available_transitions(self) -> list[AvailableTransition]:
        """List transitions leaving the current state with their guard status.

        Guards that raise or cannot be resolved count as unsatisfied; this
        method never raises because of a guard.
        """
        state = self.state
        if state is None:
            raise ValueError("Current state is undefined")
        if self._transitions is None:
            raise TransitionError(
                "TransitionsUndefined", "No transitions defined in the state machine",
            )

        available: list[AvailableTransition] = []
        for trigger, candidates in self._transitions.items():
            for transition in candidates:
                if state not in transition.origins:
                    continue
                conditions = tuple(
                    ConditionStatus(name, self._probe(name))
                    for name in transition.conditions
                )
                available.append(AvailableTransition(
                    trigger=trigger,
                    origins=transition.origins,
                    destination=transition.destination,
                    satisfied=all(c.satisfied for c in conditions),
                    conditions=conditions,
                    effects=transition.effects,
                ))
        return available

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit_state(self, state: State) -> None:
        write_field(self._context, self._config.state_attr, state)

    def _snapshot(self) -> Any:
        return take_snapshot(self._context, self._config.snapshot)

    def _log(self, message: str) -> None:
        if self._config.verbosity:
            print(f"tick-machine: {message}", file=sys.stderr)

    def _probe(self, name: str) -> bool:
        """Evaluate a guard with error isolation."""
        condition = resolve_method(self._context, name, self._methods)
        if condition is None:
            print(
                f"tick-machine: condition {name!r} is not defined",
                file=sys.stderr,
            )
            return False
        try:
            return bool(condition())
        except Exception:
            print(
                f"tick-machine: error running condition {name!r}: {sys.exc_info()[1]}",
                file=sys.stderr,
            )
            return False

    def _failure(
        self,
        call: _Call,
        kind: str,
        method: str | None = None,
        error: BaseException | None = None,
    ) -> TransitionFailure:
        return TransitionFailure(
            type=kind,
            trigger=call.trigger,
            method=method,
            undefined=kind in _UNDEFINED_KINDS,
            context=self._snapshot(),
            error=error,
        )

    def _result(self, call: _Call, failure: TransitionFailure | None) -> TransitionResult:
        return TransitionResult(
            success=failure is None,
            failure=failure,
            initial_state=call.initial_state,
            current_state=self.state,
            attempts=tuple(attempt.freeze() for attempt in call.attempts),
            precontext=call.precontext,
            postcontext=self._snapshot(),
        )

    def _fail(
        self,
        call: _Call,
        failure: TransitionFailure,
        message: str,
        always_raise: bool = False,
        on_error: Callable[[Any, Any], None] | None = None,
    ) -> TransitionResult:
        """Finish a failed call: run ``on_error``, then raise or return."""
        result = self._result(call, failure)
        if on_error is not None:
            on_error(result.precontext, result.postcontext)
        if call.throw or always_raise:
            raise TransitionError(failure.type, message, result) from failure.error
        self._log(message)
        return result


def add_state_machine(
    context: T,
    blueprint: Blueprint,
    config: MachineConfig | None = None,
    methods: MethodRegistry | None = None,
) -> StateMachine[T]:
    """Attach a state machine to ``context`` and return it.

    The host stays reachable through ``machine.context``; the machine's own
    operations (``trigger``, ``to``, ...) never collide with host members.
    """
    return StateMachine(context, blueprint, config=config, methods=methods)
