"""Contracts and errors for runtime plugins."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from packages.runtime_core.services import ServiceCollection
    from packages.runtime_shared.config import ConfigurationView


class PluginError(RuntimeError):
    """Base error for plugin protocol failures."""


class PluginContractError(PluginError):
    """Raised when a loaded plugin module exposes no usable entry point."""

    def __init__(self, plugin_name: str, detail: str) -> None:
        self.plugin_name = plugin_name
        super().__init__(f"plugin '{plugin_name}' {detail}")


class PluginEntryPoint(Protocol):
    """Callable exported by a plugin module.

    Returns ``None`` or an awaitable that completes once the plugin has
    finished registering services.
    """

    def __call__(
        self, services: ServiceCollection, configuration: ConfigurationView
    ) -> Any: ...


def require_entry_point(
    value: object, *, plugin_name: str, attribute_name: str
) -> PluginEntryPoint:
    """Ensure ``value`` is callable as ``(services, configuration)``."""
    if value is None:
        raise PluginContractError(
            plugin_name, f"does not export an entry point named '{attribute_name}'"
        )
    if not callable(value):
        raise PluginContractError(plugin_name, f"entry point '{attribute_name}' is not callable")
    try:
        signature = inspect.signature(value)
    except (TypeError, ValueError):
        return value
    try:
        signature.bind(None, None)
    except TypeError as exc:
        raise PluginContractError(
            plugin_name,
            f"entry point '{attribute_name}' must accept (services, configuration)",
        ) from exc
    return value
