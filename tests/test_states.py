"""Tests for to() and the known-state set."""
from dataclasses import dataclass
from enum import Enum

import pytest

from tick_machine import MachineConfig, Transition, TransitionError, add_state_machine


class Light(Enum):
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"


def test_to_valid_state():
    """to() moves a state-list machine to a listed state."""
    matter = {"state": "solid"}
    machine = add_state_machine(matter, ["solid", "liquid"])

    machine.to("liquid")

    assert machine.state == "liquid"
    assert matter["state"] == "liquid"


def test_to_invalid_state_raises():
    """to() with an unknown state raises DestinationInvalid."""
    matter = {"state": "solid"}
    machine = add_state_machine(matter, ["solid", "liquid"])

    with pytest.raises(TransitionError, match="DestinationInvalid") as excinfo:
        machine.to("plasma")

    assert excinfo.value.type == "DestinationInvalid"
    assert excinfo.value.result is None
    assert matter["state"] == "solid"


@pytest.mark.parametrize("throw", [True, False])
def test_to_invalid_raises_regardless_of_config(throw):
    matter = {"state": "solid"}
    machine = add_state_machine(
        matter, ["solid", "liquid"], MachineConfig(throw_exceptions=throw),
    )

    with pytest.raises(TransitionError, match="DestinationInvalid"):
        machine.to("plasma")

    assert matter["state"] == "solid"


def test_to_skips_guards_and_effects():
    """to() ignores guards, effects and origins."""
    @dataclass
    class Walker:
        state: str = "stopped"
        energy: int = 0

        def has_energy(self):
            return self.energy > 0

        def speed_up(self):
            self.energy -= 1

    walker = Walker()
    machine = add_state_machine(walker, {
        "walk": Transition("stopped", "walking", conditions="has_energy", effects="speed_up"),
    })

    machine.to("walking")

    assert walker.state == "walking"
    assert walker.energy == 0


def test_states_inferred_from_dictionary():
    """Known states are every origin and destination, without duplicates."""
    machine = add_state_machine({"state": "solid"}, {
        "melt": Transition("solid", "liquid"),
        "freeze": Transition("liquid", "solid"),
        "sublimate": [Transition(["solid", "liquid"], "gas")],
    })

    assert isinstance(machine.states, tuple)
    assert len(machine.states) == 3
    assert set(machine.states) == {"solid", "liquid", "gas"}


def test_state_list_duplicates_removed():
    machine = add_state_machine({"state": "a"}, ["a", "b", "a"])

    assert machine.states == ("a", "b")
    assert machine.transitions is None


def test_to_inferred_state():
    """A destination only reachable by trigger is still a valid to() target."""
    matter = {"state": "solid"}
    machine = add_state_machine(matter, {"melt": Transition("solid", "liquid")})

    machine.to("liquid")

    assert matter["state"] == "liquid"


def test_enum_states():
    """Enum members work as states."""
    @dataclass
    class Signal:
        state: Light = Light.RED

    signal = Signal()
    machine = add_state_machine(signal, {
        "go": Transition(Light.RED, Light.GREEN),
        "slow": Transition(Light.GREEN, Light.YELLOW),
        "halt": Transition(Light.YELLOW, Light.RED),
    })

    machine.trigger("go")
    machine.trigger("slow")

    assert signal.state is Light.YELLOW
    assert set(machine.states) == set(Light)
    with pytest.raises(TransitionError, match="DestinationInvalid"):
        machine.to("red")
