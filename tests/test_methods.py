"""Tests for MethodRegistry and method resolution against host contexts."""
from dataclasses import dataclass

import pytest

from tick_machine import MachineConfig, MethodRegistry, Transition, add_state_machine

WALK = {
    "walk": Transition(
        origins="stopped", destination="walking",
        conditions="has_energy", effects="speed_up",
    ),
}


class TestMethodRegistry:
    """Test cases for the MethodRegistry."""

    def test_register_and_get(self):
        registry = MethodRegistry()
        fn = lambda ctx: True  # noqa: E731

        registry.register("always", fn)

        assert registry.get("always") is fn

    def test_get_unregistered_raises_keyerror(self):
        registry = MethodRegistry()

        with pytest.raises(KeyError):
            registry.get("nonexistent")

    def test_has_method(self):
        registry = MethodRegistry()
        registry.register("exists", lambda ctx: True)

        assert registry.has("exists") is True
        assert registry.has("does_not_exist") is False

    def test_names_method(self):
        registry = MethodRegistry()
        registry.register("guard1", lambda ctx: True)
        registry.register("effect1", lambda ctx: None)

        assert registry.names() == ["guard1", "effect1"]

    def test_names_empty(self):
        assert MethodRegistry().names() == []

    def test_register_overwrites(self):
        registry = MethodRegistry()
        registry.register("g", lambda ctx: True)
        registry.register("g", lambda ctx: False)

        assert registry.get("g")(None) is False
        assert registry.names() == ["g"]

    def test_remove(self):
        registry = MethodRegistry()
        registry.register("g", lambda ctx: True)

        registry.remove("g")

        assert registry.has("g") is False
        with pytest.raises(KeyError):
            registry.remove("g")


class TestResolution:
    """Guards and effects resolved through a registry or host members."""

    def test_mapping_context_with_registry(self):
        """A plain dict host works when its methods are registered."""
        # Arrange
        ctx = {"state": "stopped", "energy": 1}
        registry = MethodRegistry()
        registry.register("has_energy", lambda c: c["energy"] > 0)

        def speed_up(c):
            c["energy"] -= 1

        registry.register("speed_up", speed_up)
        machine = add_state_machine(ctx, WALK, methods=registry)

        # Act
        result = machine.trigger("walk")

        # Assert
        assert result.success is True
        assert ctx == {"state": "walking", "energy": 0}
        assert result.precontext == {"state": "stopped", "energy": 1}
        assert result.precontext is not ctx

    def test_mapping_context_without_registry(self):
        """Mapping values are never treated as guards."""
        ctx = {"state": "stopped", "energy": 1, "has_energy": lambda: True}
        machine = add_state_machine(ctx, WALK, MachineConfig(throw_exceptions=False))

        result = machine.trigger("walk")

        assert result.failure.type == "ConditionUndefined"

    def test_registry_takes_priority_over_host_member(self):
        @dataclass
        class Walker:
            state: str = "stopped"
            energy: int = 1

            def has_energy(self):
                return True

            def speed_up(self):
                self.energy -= 1

        registry = MethodRegistry()
        registry.register("has_energy", lambda w: False)
        machine = add_state_machine(
            Walker(), WALK, MachineConfig(throw_exceptions=False), methods=registry,
        )

        result = machine.trigger("walk")

        assert result.failure.type == "ConditionValue"

    def test_registry_and_host_members_mix(self):
        """Unregistered names fall back to host members."""
        @dataclass
        class Walker:
            state: str = "stopped"
            energy: int = 1

            def speed_up(self):
                self.energy -= 1

        walker = Walker()
        registry = MethodRegistry()
        registry.register("has_energy", lambda w: w.energy > 0)
        machine = add_state_machine(walker, WALK, methods=registry)

        machine.trigger("walk")

        assert walker.state == "walking"
        assert walker.energy == 0

    def test_registered_effect_receives_props(self):
        ctx = {"state": "stopped", "energy": 1, "speed": 0}
        registry = MethodRegistry()
        registry.register("has_energy", lambda c: True)

        def speed_up(c, props):
            c["speed"] = props["speed"]

        registry.register("speed_up", speed_up)
        machine = add_state_machine(ctx, WALK, methods=registry)

        machine.trigger("walk", {"speed": 3})

        assert ctx["speed"] == 3

    def test_registered_effect_error(self):
        ctx = {"state": "stopped"}
        registry = MethodRegistry()
        registry.register("has_energy", lambda c: True)

        def speed_up(c):
            raise ValueError("no legs")

        registry.register("speed_up", speed_up)
        machine = add_state_machine(
            ctx, WALK, MachineConfig(throw_exceptions=False), methods=registry,
        )

        result = machine.trigger("walk")

        assert result.failure.type == "EffectError"
        assert isinstance(result.failure.error, ValueError)
        assert ctx["state"] == "stopped"
        assert machine.methods is registry
