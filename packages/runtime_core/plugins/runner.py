"""Sequential application of configured plugins to a service collection."""

from __future__ import annotations

import inspect
from dataclasses import dataclass

from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.config import ConfigurationView, PluginDescriptor
from packages.runtime_shared.logging import get_logger, plugin_scope

from .loader import ImportlibPluginLoader, PluginLoader

_LOGGER = get_logger(__name__)

PLUGINS_PATH = ("runtimeSettings", "plugins")


@dataclass(frozen=True, slots=True)
class PluginRunResult:
    """Plugins applied and skipped during one run, in configuration order."""

    applied: tuple[str, ...]
    skipped: tuple[str, ...]


def configured_plugins(configuration: ConfigurationView) -> tuple[PluginDescriptor, ...]:
    """Return plugin descriptors from ``runtimeSettings.plugins``; invalid means none."""
    descriptors = configuration.get_typed(PLUGINS_PATH, list[PluginDescriptor])
    return tuple(descriptors or ())


async def add_plugins(
    services: ServiceCollection,
    configuration: ConfigurationView,
    loader: PluginLoader | None = None,
) -> PluginRunResult:
    """Load and invoke each configured plugin strictly in order.

    Each entry point receives the live collection and a configuration view
    bound to the plugin's settings prefix, and is awaited before the next
    plugin is loaded.
    """
    plugin_loader = loader if loader is not None else ImportlibPluginLoader()
    applied: list[str] = []
    skipped: list[str] = []

    for descriptor in configured_plugins(configuration):
        with plugin_scope(descriptor.name, descriptor.resolved_prefix):
            entry_point = plugin_loader.load(descriptor.name)
            if entry_point is None:
                skipped.append(descriptor.name)
                continue

            result = entry_point(
                services, configuration.bind((descriptor.resolved_prefix,))
            )
            if inspect.isawaitable(result):
                await result
            applied.append(descriptor.name)
            _LOGGER.info("plugin applied")

    return PluginRunResult(applied=tuple(applied), skipped=tuple(skipped))
