"""Registration records, slot states and errors for the service registry."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

ServiceKey: TypeAlias = str
Dependencies: TypeAlias = Mapping[ServiceKey, Any]

# Either callable may return the value directly or an awaitable producing it.
Construct: TypeAlias = Callable[[Dependencies], Any]
Transform: TypeAlias = Callable[[Dependencies, Any], Any]


class ServiceRegistryError(RuntimeError):
    """Base error for structural registry failures."""


class DuplicateFactoryError(ServiceRegistryError):
    """Raised when a key receives a second initial producer."""

    def __init__(self, key: ServiceKey) -> None:
        self.key = key
        super().__init__(f"service '{key}' already has an initial factory")


class MissingProducerError(ServiceRegistryError):
    """Raised when resolution reaches a key with no factory or seeded default."""

    def __init__(self, key: ServiceKey, chain: tuple[ServiceKey, ...] = ()) -> None:
        self.key = key
        self.chain = chain
        if chain:
            path = " -> ".join((*chain, key))
            message = f"no producer registered for service '{key}' (required via {path})"
        else:
            message = f"no producer registered for service '{key}'"
        super().__init__(message)


class DependencyCycleError(ServiceRegistryError):
    """Raised when declared dependencies form a cycle."""

    def __init__(self, cycle: tuple[ServiceKey, ...]) -> None:
        self.cycle = cycle
        self.key = cycle[0]
        super().__init__(f"service dependency cycle detected: {' -> '.join(cycle)}")


class RegistryFrozenError(ServiceRegistryError):
    """Raised when registering against a key that is already resolving or resolved."""

    def __init__(self, key: ServiceKey) -> None:
        self.key = key
        super().__init__(
            f"service '{key}' cannot be registered after resolution has started"
        )


@dataclass(frozen=True, slots=True)
class Factory:
    """Initial producer for one key."""

    key: ServiceKey
    dependencies: tuple[ServiceKey, ...]
    construct: Construct


@dataclass(frozen=True, slots=True)
class SeededDefault:
    """Initial producer supplied at registry construction time.

    ``make`` returns a fresh seed value for every resolution attempt, so
    composers that mutate the seed in place never see a previous attempt's work.
    """

    key: ServiceKey
    make: Callable[[], Any]
    dependencies: tuple[ServiceKey, ...] = ()


@dataclass(frozen=True, slots=True)
class Composer:
    """Transform folded over a key's value after its initial producer runs."""

    key: ServiceKey
    dependencies: tuple[ServiceKey, ...]
    transform: Transform


Producer: TypeAlias = Factory | SeededDefault


class SlotState(str, Enum):
    """Lifecycle of one service key."""

    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


@dataclass(slots=True)
class ServiceSlot:
    """Everything the registry knows about one key."""

    key: ServiceKey
    producer: Producer | None = None
    composers: list[Composer] = field(default_factory=list)
    state: SlotState = SlotState.UNREGISTERED
    value: Any = None
    in_flight: asyncio.Future[Any] | None = None

    @property
    def dependencies(self) -> tuple[ServiceKey, ...]:
        """Declared dependencies of the producer then every composer, deduplicated."""
        ordered: list[ServiceKey] = []
        declared = [
            *(self.producer.dependencies if self.producer else ()),
            *(dep for composer in self.composers for dep in composer.dependencies),
        ]
        for dependency in declared:
            if dependency not in ordered:
                ordered.append(dependency)
        return tuple(ordered)
