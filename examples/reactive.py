"""Reactive -- transitions that fire when their guards turn true.

Demonstrates:
- Observable fields on a host object
- A reactive machine watching the guards of the current state
- Effects with props and an on_error rollback

Run: python -m examples.reactive
"""

from dataclasses import dataclass, field

from tick_machine import Observable, Transition, TransitionOptions, add_reactive_state_machine


@dataclass
class Matter:
    state: str = "solid"
    temperature: Observable = field(default_factory=lambda: Observable(0.0))
    pressure: float = 101.325

    def above_melting_point(self) -> bool:
        return self.temperature.value > 0

    def below_melting_point(self) -> bool:
        return self.temperature.value <= 0

    def above_boiling_point(self) -> bool:
        return self.temperature.value >= 100

    def set_pressure(self, props: dict) -> None:
        if props["pressure"] < 0:
            raise ValueError("negative pressure")
        self.pressure = props["pressure"]


TRANSITIONS = {
    "melt": Transition("solid", "liquid", conditions="above_melting_point"),
    "freeze": Transition("liquid", "solid", conditions="below_melting_point"),
    "evaporate": Transition("liquid", "gas", conditions="above_boiling_point"),
    "condense": Transition("gas", "liquid", effects="set_pressure"),
}


def main() -> None:
    print("=== Reactive ===\n")

    matter = Matter()
    machine = add_reactive_state_machine(matter, TRANSITIONS)

    for temperature in (-10.0, 25.0, 120.0):
        matter.temperature.value = temperature
        print(f"temperature={temperature:>6}  ->  state={machine.state}")

    def rollback(precontext: Matter, postcontext: Matter) -> None:
        matter.pressure = precontext.pressure

    result = machine.trigger(
        "condense",
        {"pressure": -1.0},
        TransitionOptions(on_error=rollback, throw_exceptions=False),
    )
    print(f"\ncondense with bad pressure -> {result.failure.type}, pressure={matter.pressure}")

    machine.trigger("condense", {"pressure": 200.0})
    print(f"condense -> state={machine.state}, pressure={matter.pressure}")

    matter.temperature.value = -5.0
    print(f"temperature=  -5.0  ->  state={machine.state}")

    machine.shutdown()


if __name__ == "__main__":
    main()
