"""Dynamic loading of plugin entry points by module name."""

from __future__ import annotations

import importlib
from collections.abc import Callable
from types import ModuleType
from typing import Protocol

from packages.runtime_shared.logging import fields, get_logger

from .contracts import PluginEntryPoint, require_entry_point

_LOGGER = get_logger(__name__)

DEFAULT_ENTRY_POINT = "plugin"


class PluginLoader(Protocol):
    """Maps a plugin name to its entry point, or ``None`` when not installed."""

    def load(self, name: str) -> PluginEntryPoint | None: ...


def split_plugin_name(name: str, default_attribute: str = DEFAULT_ENTRY_POINT) -> tuple[str, str]:
    """Split ``package.module:attribute`` into its module path and attribute."""
    module_name, separator, attribute = name.partition(":")
    if not separator or not attribute:
        return module_name, default_attribute
    return module_name, attribute


class ImportlibPluginLoader:
    """Load plugins with :func:`importlib.import_module`.

    Import failures mean the plugin is not installed and yield ``None``. A module
    that imports but exposes no callable entry point is a contract violation.
    """

    def __init__(
        self,
        *,
        entry_point: str = DEFAULT_ENTRY_POINT,
        importer: Callable[[str], ModuleType] = importlib.import_module,
    ) -> None:
        self._entry_point = entry_point
        self._importer = importer

    def load(self, name: str) -> PluginEntryPoint | None:
        module_name, attribute = split_plugin_name(name, self._entry_point)
        try:
            module = self._importer(module_name)
        except Exception as exc:  # any import-time failure means "not installed"
            _LOGGER.info(
                "plugin module could not be imported; skipping",
                extra={fields.PLUGIN_NAME: name, fields.ERRORS: [repr(exc)]},
            )
            return None

        return require_entry_point(
            getattr(module, attribute, None),
            plugin_name=name,
            attribute_name=attribute,
        )
