"""Tests for component-registration records and registry."""

from __future__ import annotations

import threading

import pytest

from packages.runtime_shared.component_registration import (
    ComponentRegistration,
    ComponentRegistrationError,
    ComponentRegistry,
    make_default_component_registry,
)


def test_default_registry_contains_builtin_families() -> None:
    """A fresh default registry should hold the built-in families in order."""
    registry = make_default_component_registry()

    assert [item.name for item in registry.list_registrations()] == [
        "adaptive",
        "qnamaker",
        "luis",
    ]
    assert "Microsoft.LuisRecognizer" in registry.declarative_kinds()


def test_default_registries_are_independent() -> None:
    """Each composition run should get its own registry instance."""
    first = make_default_component_registry()
    second = make_default_component_registry()

    first.add(ComponentRegistration("custom", frozenset({"Acme.Dialog"})))

    assert "custom" in first
    assert "custom" not in second


def test_identical_reregistration_is_a_noop() -> None:
    """Registering the same definition twice should not raise."""
    registry = ComponentRegistry()
    registration = ComponentRegistration("custom", frozenset({"Acme.Dialog"}))

    registry.add(registration)
    registry.add(ComponentRegistration("custom", frozenset({"Acme.Dialog"})))

    assert len(registry) == 1


def test_mismatched_reregistration_is_rejected() -> None:
    """A different definition under an existing name should raise."""
    registry = ComponentRegistry()
    registry.add(ComponentRegistration("custom", frozenset({"Acme.Dialog"})))

    with pytest.raises(ComponentRegistrationError):
        registry.add(ComponentRegistration("custom", frozenset({"Other.Dialog"})))


def test_invalid_registration_name_is_rejected() -> None:
    """Registration names should be lowercase identifiers."""
    with pytest.raises(ComponentRegistrationError):
        ComponentRegistration("Not Valid")


def test_get_unknown_registration_raises() -> None:
    """Looking up an unknown registration should raise a registration error."""
    with pytest.raises(ComponentRegistrationError):
        ComponentRegistry().get("missing")


def test_reads_wait_for_a_writer_holding_the_lock() -> None:
    """Membership and size checks should not observe a registry mid-update."""
    registry = ComponentRegistry()
    sizes: list[int] = []

    with registry._lock:
        reader = threading.Thread(target=lambda: sizes.append(len(registry)))
        reader.start()
        reader.join(timeout=0.05)
        assert reader.is_alive()
        registry.add(ComponentRegistration("custom", frozenset({"Acme.Dialog"})))

    reader.join(timeout=1)
    assert sizes == [1]
    assert "custom" in registry
    assert registry.get("custom").name == "custom"
