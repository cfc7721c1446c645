"""Basics -- attach a state machine to a plain dataclass.

Demonstrates:
- Declaring transitions with guards and effects by method name
- Firing triggers and reading the result
- Returning failures instead of raising them
- Jumping directly with to()

Run: python -m examples.basics
"""

from dataclasses import dataclass

from tick_machine import MachineConfig, Transition, add_state_machine


@dataclass
class Walker:
    state: str = "stopped"
    energy: int = 1
    speed: int = 0

    def has_energy(self) -> bool:
        return self.energy > 0

    def speed_up(self) -> None:
        self.speed = 1
        self.energy -= 1

    def slow_down(self) -> None:
        self.speed = 0


TRANSITIONS = {
    "walk": Transition(
        origins="stopped",
        destination="walking",
        conditions="has_energy",
        effects="speed_up",
    ),
    "stop": Transition(origins="walking", destination="stopped", effects="slow_down"),
}


def main() -> None:
    print("=== Basics ===\n")

    walker = Walker(energy=1)
    machine = add_state_machine(
        walker, TRANSITIONS, MachineConfig(throw_exceptions=False),
    )
    print(f"Known states: {machine.states}")

    result = machine.trigger("walk")
    print(f"walk  -> success={result.success}  state={walker.state}  energy={walker.energy}")

    machine.trigger("stop")
    print(f"stop  -> state={walker.state}  speed={walker.speed}")

    # No energy left: the guard fails and the failure comes back as data.
    result = machine.trigger("walk")
    print(f"walk  -> success={result.success}  failure={result.failure.type}")

    # Triggers nobody declared are reported too.
    result = machine.trigger("fly")
    print(f"fly   -> failure={result.failure.type}")

    # to() skips guards and effects but still checks the state exists.
    machine.to("walking")
    print(f"to()  -> state={walker.state}")


if __name__ == "__main__":
    main()
