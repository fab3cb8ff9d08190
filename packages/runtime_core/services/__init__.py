"""Public API for the service composition registry."""

from .collection import ServiceCollection
from .contracts import (
    Composer,
    DependencyCycleError,
    DuplicateFactoryError,
    Factory,
    MissingProducerError,
    RegistryFrozenError,
    SeededDefault,
    ServiceKey,
    ServiceRegistryError,
    SlotState,
)

__all__ = [
    "Composer",
    "DependencyCycleError",
    "DuplicateFactoryError",
    "Factory",
    "MissingProducerError",
    "RegistryFrozenError",
    "SeededDefault",
    "ServiceCollection",
    "ServiceKey",
    "ServiceRegistryError",
    "SlotState",
]
