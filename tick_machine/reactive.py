"""Observable values and a state machine driven by guard changes.

A ``ReactiveStateMachine`` watches the guards of every transition leaving
the current state. Guards read ``Observable`` cells on the host; each cell a
guard reads becomes a dependency of that transition. When a dependency
changes and all of the transition's guards hold, the machine fires the
transition's trigger exactly as a programmatic ``trigger()`` call would.
"""
from __future__ import annotations

import copy
import functools
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from tick_machine.config import MachineConfig, TransitionOptions
from tick_machine.history import TransitionResult
from tick_machine.machine import Blueprint, StateMachine
from tick_machine.methods import MethodRegistry
from tick_machine.types import State, Transition

T = TypeVar("T")
V = TypeVar("V")

_Handler = Callable[[Any, Any], None]

# One frame per active track_dependencies() call, keyed by id().
_frames: list[dict[int, Observable[Any]]] = []
# One frame per active record_changes() call, keyed by id().
_change_frames: list[dict[int, Observable[Any]]] = []


class Observable(Generic[V]):
    """Value cell that notifies subscribers when its value changes.

    Handlers are called as ``handler(new, old)`` in subscription order.
    Deep copies carry the value only, never the subscribers.
    """

    def __init__(self, value: V) -> None:
        self._value = value
        self._subscribers: list[_Handler] = []

    @property
    def value(self) -> V:
        if _frames:
            _frames[-1].setdefault(id(self), self)
        return self._value

    @value.setter
    def value(self, value: V) -> None:
        old = self._value
        self._value = value
        if value == old:
            return
        for frame in _change_frames:
            frame.setdefault(id(self), self)
        for handler in list(self._subscribers):
            handler(value, old)

    def peek(self) -> V:
        """Read the value without registering a dependency."""
        return self._value

    def subscribe(self, handler: _Handler) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: _Handler) -> None:
        try:
            self._subscribers.remove(handler)
        except ValueError:
            pass

    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def __deepcopy__(self, memo: dict[int, Any]) -> Observable[V]:
        clone = type(self)(copy.deepcopy(self._value, memo))
        memo[id(self)] = clone
        return clone

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"


def track_dependencies(fn: Callable[[], V]) -> tuple[V, list[Observable[Any]]]:
    """Run ``fn`` and return its result with every Observable it read."""
    frame: dict[int, Observable[Any]] = {}
    _frames.append(frame)
    try:
        result = fn()
    finally:
        _frames.pop()
    return result, list(frame.values())


def record_changes(fn: Callable[[], V]) -> tuple[V, list[Observable[Any]]]:
    """Run ``fn`` and return its result with every Observable whose value changed."""
    frame: dict[int, Observable[Any]] = {}
    _change_frames.append(frame)
    try:
        result = fn()
    finally:
        _change_frames.pop()
    return result, list(frame.values())


@dataclass(eq=False)
class _Watcher:
    trigger: str
    transition: Transition
    handler: _Handler = field(repr=False, default=None)  # type: ignore[assignment]
    sources: list[Observable[Any]] = field(default_factory=list)
    active: bool = True


class ReactiveStateMachine(StateMachine[T]):
    """StateMachine that fires transitions when their guards turn true.

    Watchers are rebuilt on every state entry: the ones for the state being
    left are unsubscribed before the new state's outgoing transitions are
    subscribed. Every Observable changed while a trigger is running is
    recorded, and once the outer trigger returns each current watcher that
    depends on one of them is re-checked. Transitions without guards never
    auto-fire.

    Auto-fired triggers never raise: a failed one is reported on stderr so
    the ``Observable`` assignment that caused it completes normally.
    """

    def __init__(
        self,
        context: T,
        blueprint: Blueprint,
        config: MachineConfig | None = None,
        methods: MethodRegistry | None = None,
    ) -> None:
        super().__init__(context, blueprint, config=config, methods=methods)
        self._watchers: list[_Watcher] = []
        self._running = False
        self._shutdown = False
        self._watch_outgoing()

    @property
    def watching(self) -> list[tuple[str, Transition]]:
        """(trigger, transition) pairs currently watched."""
        return [(w.trigger, w.transition) for w in self._watchers]

    def trigger(
        self,
        trigger: str,
        props: Any = None,
        options: TransitionOptions | None = None,
    ) -> TransitionResult:
        if self._running:
            return super().trigger(trigger, props, options)
        self._running = True
        try:
            result, changed = record_changes(
                functools.partial(super().trigger, trigger, props, options)
            )
        finally:
            self._running = False
        self._recheck(changed)
        return result

    def shutdown(self) -> None:
        """Unsubscribe every watcher. Later changes are ignored."""
        self._shutdown = True
        self._unwatch_all()

    def _commit_state(self, state: State) -> None:
        super()._commit_state(state)
        self._watch_outgoing()

    def _watch_outgoing(self) -> None:
        self._unwatch_all()
        if self._shutdown or self._transitions is None:
            return
        state = self.state
        for trigger, candidates in self._transitions.items():
            for transition in candidates:
                if state not in transition.origins or not transition.conditions:
                    continue
                watcher = _Watcher(trigger=trigger, transition=transition)
                watcher.handler = self._make_handler(watcher)
                self._evaluate(watcher)
                self._watchers.append(watcher)

    def _make_handler(self, watcher: _Watcher) -> _Handler:
        def handler(new: Any, old: Any) -> None:
            self._on_change(watcher)

        return handler

    def _unwatch_all(self) -> None:
        for watcher in self._watchers:
            watcher.active = False
            for source in watcher.sources:
                source.unsubscribe(watcher.handler)
        self._watchers = []

    def _evaluate(self, watcher: _Watcher) -> bool:
        """Evaluate every guard of the watched transition, tracking reads.

        All guards run (no short-circuit) so that dependencies of later
        guards are subscribed too. Newly read sources are subscribed.
        """
        statuses, sources = track_dependencies(
            lambda: [self._probe(name) for name in watcher.transition.conditions]
        )
        for source in sources:
            if not any(source is known for known in watcher.sources):
                source.subscribe(watcher.handler)
                watcher.sources.append(source)
        return all(statuses)

    def _on_change(self, watcher: _Watcher) -> None:
        # Changes during a trigger are recorded and re-checked when it returns.
        if watcher.active and not self._running:
            self._check(watcher)

    def _check(self, watcher: _Watcher) -> None:
        if not watcher.active or not self._evaluate(watcher):
            return
        result = self.trigger(
            watcher.trigger, options=TransitionOptions(throw_exceptions=False),
        )
        if not result.success:
            print(
                f"tick-machine: auto-fired trigger {watcher.trigger!r} failed: "
                f"{result.failure.type}",
                file=sys.stderr,
            )

    def _recheck(self, changed: list[Observable[Any]]) -> None:
        if not changed:
            return
        for watcher in list(self._watchers):
            if any(source is cell for source in watcher.sources for cell in changed):
                self._check(watcher)


def add_reactive_state_machine(
    context: T,
    blueprint: Blueprint,
    config: MachineConfig | None = None,
    methods: MethodRegistry | None = None,
) -> ReactiveStateMachine[T]:
    """Attach a reactive state machine to ``context`` and return it."""
    return ReactiveStateMachine(context, blueprint, config=config, methods=methods)
