"""Public API for the dynamic plugin extension protocol."""

from .contracts import (
    PluginContractError,
    PluginEntryPoint,
    PluginError,
    require_entry_point,
)
from .loader import (
    DEFAULT_ENTRY_POINT,
    ImportlibPluginLoader,
    PluginLoader,
    split_plugin_name,
)
from .runner import PluginRunResult, add_plugins, configured_plugins

__all__ = [
    "DEFAULT_ENTRY_POINT",
    "ImportlibPluginLoader",
    "PluginContractError",
    "PluginEntryPoint",
    "PluginError",
    "PluginLoader",
    "PluginRunResult",
    "add_plugins",
    "configured_plugins",
    "require_entry_point",
    "split_plugin_name",
]
