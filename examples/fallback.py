"""Fallback -- several candidate transitions under one trigger.

Demonstrates:
- Ordered fallback when an earlier candidate's guard is false
- Reading the attempt trail of a call
- Listing available transitions for the current state

Run: python -m examples.fallback
"""

from dataclasses import dataclass

from tick_machine import Transition, add_state_machine


@dataclass
class Hero:
    state: str = "idle"
    energy: int = 2

    def has_energy(self) -> bool:
        return self.energy > 0

    def work(self) -> None:
        self.energy -= 1


TRANSITIONS = {
    # Too tired to work means falling asleep instead.
    "patrol": [
        Transition("idle", "idle", conditions="has_energy", effects="work"),
        Transition("idle", "sleeping"),
    ],
    "sleep": [Transition("idle", "sleeping")],
    "wake": [Transition("sleeping", "idle")],
}


def main() -> None:
    print("=== Fallback ===\n")

    hero = Hero()
    machine = add_state_machine(hero, TRANSITIONS)

    for _ in range(3):
        result = machine.trigger("patrol")
        trail = ", ".join(
            f"{a.transition.destination}:{'ok' if a.success else a.failure.type}"
            for a in result.attempts
        )
        print(f"patrol -> state={hero.state:<9} energy={hero.energy}  attempts=[{trail}]")

    machine.trigger("wake")
    print("\nAvailable from idle:")
    for available in machine.get_available_transitions():
        guards = ", ".join(
            f"{c.name}={c.satisfied}" for c in available.conditions
        ) or "-"
        print(
            f"  {available.trigger:<7} -> {available.destination:<9} "
            f"satisfied={available.satisfied}  guards: {guards}"
        )


if __name__ == "__main__":
    main()
