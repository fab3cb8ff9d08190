"""Public API for the bot runtime composition root."""

from packages.runtime_core.plugins import (
    ImportlibPluginLoader,
    PluginContractError,
    PluginError,
    PluginLoader,
    PluginRunResult,
    add_plugins,
)
from packages.runtime_core.runtime import RuntimeServices, get_runtime_services
from packages.runtime_core.services import (
    DependencyCycleError,
    DuplicateFactoryError,
    MissingProducerError,
    RegistryFrozenError,
    ServiceCollection,
    ServiceRegistryError,
)

__all__ = [
    "DependencyCycleError",
    "DuplicateFactoryError",
    "ImportlibPluginLoader",
    "MissingProducerError",
    "PluginContractError",
    "PluginError",
    "PluginLoader",
    "PluginRunResult",
    "RegistryFrozenError",
    "RuntimeServices",
    "ServiceCollection",
    "ServiceRegistryError",
    "add_plugins",
    "get_runtime_services",
]
