"""Component-registration records and their lock-guarded registry.

A component registration announces a family of declarative component types
(adaptive dialogs, language understanding recognizers, question answering) to
the resource loader. Bootstrap seeds one registry per composition run under the
``componentRegistration`` service key; plugins may compose more onto it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from threading import RLock
from typing import Final, FrozenSet

_REGISTRATION_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z][a-z0-9_.-]{0,62}$")


class ComponentRegistrationError(ValueError):
    """Raised when a registration definition or registration call is invalid."""


@dataclass(frozen=True, slots=True)
class ComponentRegistration:
    """One named family of declarative component kinds."""

    name: str
    declarative_kinds: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        """Validate registration invariants."""
        if not _REGISTRATION_NAME_RE.fullmatch(self.name):
            raise ComponentRegistrationError(
                f"invalid component registration name '{self.name}'"
            )
        for kind in self.declarative_kinds:
            if not kind:
                raise ComponentRegistrationError(
                    f"registration '{self.name}' declares an empty kind"
                )


@dataclass(slots=True)
class ComponentRegistry:
    """In-memory registry of component registrations for one composition run."""

    _registrations: dict[str, ComponentRegistration] = field(default_factory=dict)
    _lock: RLock = field(default_factory=RLock)

    def add(self, registration: ComponentRegistration) -> ComponentRegistration:
        """Register one component family; identical re-registration is a no-op."""
        with self._lock:
            existing = self._registrations.get(registration.name)
            if existing is not None and existing != registration:
                raise ComponentRegistrationError(
                    "duplicate component registration with mismatched definition: "
                    f"{registration.name}"
                )
            self._registrations[registration.name] = registration
        return registration

    def get(self, name: str) -> ComponentRegistration:
        """Return one registration by name."""
        with self._lock:
            registration = self._registrations.get(name)
        if registration is None:
            raise ComponentRegistrationError(f"component registration not found: {name}")
        return registration

    def list_registrations(self) -> tuple[ComponentRegistration, ...]:
        """Return all registrations in insertion order."""
        with self._lock:
            return tuple(self._registrations.values())

    def declarative_kinds(self) -> frozenset[str]:
        """Return the union of declarative kinds across all registrations."""
        with self._lock:
            return frozenset(
                kind
                for registration in self._registrations.values()
                for kind in registration.declarative_kinds
            )

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._registrations

    def __len__(self) -> int:
        with self._lock:
            return len(self._registrations)


ADAPTIVE_REGISTRATION = ComponentRegistration(
    "adaptive",
    frozenset(
        {
            "Microsoft.AdaptiveDialog",
            "Microsoft.OnBeginDialog",
            "Microsoft.SendActivity",
            "Microsoft.RegexRecognizer",
        }
    ),
)
QNAMAKER_REGISTRATION = ComponentRegistration(
    "qnamaker",
    frozenset({"Microsoft.QnAMakerDialog", "Microsoft.QnAMakerRecognizer"}),
)
LUIS_REGISTRATION = ComponentRegistration(
    "luis",
    frozenset({"Microsoft.LuisRecognizer"}),
)


def make_default_component_registry() -> ComponentRegistry:
    """Return a fresh registry seeded with the built-in component families."""
    registry = ComponentRegistry()
    for registration in (ADAPTIVE_REGISTRATION, QNAMAKER_REGISTRATION, LUIS_REGISTRATION):
        registry.add(registration)
    return registry
