"""Tests for plugin loading, contract validation and sequential application."""

from __future__ import annotations

import asyncio
import sys
from types import ModuleType
from typing import Any

import pytest

from packages.runtime_core.plugins import (
    ImportlibPluginLoader,
    PluginContractError,
    add_plugins,
    split_plugin_name,
)
from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.config import (
    ConfigurationSource,
    ConfigurationView,
)


def _configuration(data: dict[str, Any]) -> ConfigurationView:
    """Build a root configuration over one source."""
    return ConfigurationView.from_sources([ConfigurationSource("test", data)])


def _install_module(
    monkeypatch: pytest.MonkeyPatch, name: str, **attributes: Any
) -> ModuleType:
    """Register a synthetic module under ``name`` for import."""
    module = ModuleType(name)
    for key, value in attributes.items():
        setattr(module, key, value)
    monkeypatch.setitem(sys.modules, name, module)
    return module


@pytest.mark.asyncio
async def test_missing_plugin_is_skipped_and_valid_plugin_gets_bound_view(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """An uninstalled plugin is skipped; the next sees only its own settings."""
    seen: dict[str, Any] = {}

    def plugin(services: ServiceCollection, configuration: ConfigurationView) -> None:
        seen["prefix"] = configuration.prefix
        seen["greeting"] = configuration.get(["greeting"])
        seen["outside"] = configuration.get(["runtimeSettings"])
        services.add_instance("greeting", configuration.get(["greeting"]))

    _install_module(monkeypatch, "valid-module", plugin=plugin)
    configuration = _configuration(
        {
            "runtimeSettings": {
                "plugins": [{"name": "missing-module"}, {"name": "valid-module"}]
            },
            "valid-module": {"greeting": "hello"},
        }
    )
    services = ServiceCollection()

    result = await add_plugins(services, configuration, ImportlibPluginLoader())

    assert result.skipped == ("missing-module",)
    assert result.applied == ("valid-module",)
    assert seen == {"prefix": ("valid-module",), "greeting": "hello", "outside": None}
    assert await services.resolve("greeting") == "hello"


@pytest.mark.asyncio
async def test_settings_prefix_overrides_plugin_name(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A descriptor's settings prefix should select the bound sub-tree."""
    seen: list[tuple[str, ...]] = []
    _install_module(
        monkeypatch,
        "acme_plugin",
        plugin=lambda _services, configuration: seen.append(configuration.prefix),
    )
    configuration = _configuration(
        {
            "runtimeSettings": {
                "plugins": [{"name": "acme_plugin", "settingsPrefix": "acme"}]
            }
        }
    )

    await add_plugins(ServiceCollection(), configuration, ImportlibPluginLoader())

    assert seen == [("acme",)]


@pytest.mark.asyncio
async def test_plugins_run_sequentially_in_configured_order(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Async plugins should complete before the next starts; composers keep order."""
    events: list[str] = []

    async def first(services: ServiceCollection, _configuration: ConfigurationView) -> None:
        events.append("first:start")
        await asyncio.sleep(0)
        services.compose_factory("middlewares", lambda _deps, value: [*value, "first"])
        events.append("first:end")

    def second(services: ServiceCollection, _configuration: ConfigurationView) -> None:
        events.append("second")
        services.compose_factory("middlewares", lambda _deps, value: [*value, "second"])

    _install_module(monkeypatch, "first_plugin", plugin=first)
    _install_module(monkeypatch, "second_plugin", plugin=second)
    configuration = _configuration(
        {
            "runtimeSettings": {
                "plugins": [{"name": "first_plugin"}, {"name": "second_plugin"}]
            }
        }
    )
    services = ServiceCollection({"middlewares": []})

    await add_plugins(services, configuration, ImportlibPluginLoader())

    assert events == ["first:start", "first:end", "second"]
    assert await services.resolve("middlewares") == ["first", "second"]


@pytest.mark.asyncio
async def test_module_without_entry_point_is_a_contract_violation(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A loadable module exporting no callable entry point should be fatal."""
    _install_module(monkeypatch, "broken_plugin", plugin="not callable")
    configuration = _configuration(
        {"runtimeSettings": {"plugins": [{"name": "broken_plugin"}]}}
    )

    with pytest.raises(PluginContractError) as exc_info:
        await add_plugins(ServiceCollection(), configuration, ImportlibPluginLoader())

    assert exc_info.value.plugin_name == "broken_plugin"


def test_entry_point_with_wrong_arity_is_a_contract_violation(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """An entry point that cannot take (services, configuration) should be rejected."""
    _install_module(monkeypatch, "arity_plugin", plugin=lambda services: None)

    with pytest.raises(PluginContractError):
        ImportlibPluginLoader().load("arity_plugin")


def test_module_raising_during_import_is_treated_as_absent() -> None:
    """Load-time errors should mean the plugin is not installed."""

    def failing_importer(name: str) -> ModuleType:
        raise RuntimeError(f"cannot initialise {name}")

    loader = ImportlibPluginLoader(importer=failing_importer)

    assert loader.load("exploding_plugin") is None


def test_module_attribute_syntax_selects_entry_point(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """``module:attribute`` names should select a non-default entry point."""
    register = lambda _services, _configuration: None  # noqa: E731
    _install_module(monkeypatch, "custom_plugin", register=register)

    assert split_plugin_name("custom_plugin:register") == ("custom_plugin", "register")
    assert ImportlibPluginLoader().load("custom_plugin:register") is register


@pytest.mark.asyncio
async def test_plugin_runtime_errors_propagate(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Errors raised inside a plugin should reach the bootstrap caller."""

    def plugin(_services: ServiceCollection, _configuration: ConfigurationView) -> None:
        raise ValueError("plugin misconfigured")

    _install_module(monkeypatch, "raising_plugin", plugin=plugin)
    configuration = _configuration(
        {"runtimeSettings": {"plugins": [{"name": "raising_plugin"}]}}
    )

    with pytest.raises(ValueError, match="plugin misconfigured"):
        await add_plugins(ServiceCollection(), configuration, ImportlibPluginLoader())


@pytest.mark.asyncio
async def test_invalid_plugin_list_means_no_plugins() -> None:
    """A shape-invalid plugin list should be treated as absent."""

    class _RecordingLoader:
        """Loader that records every requested name."""

        def __init__(self) -> None:
            self.requested: list[str] = []

        def load(self, name: str) -> None:
            self.requested.append(name)
            return None

    loader = _RecordingLoader()
    configuration = _configuration({"runtimeSettings": {"plugins": [{"nom": "x"}]}})

    result = await add_plugins(ServiceCollection(), configuration, loader)

    assert loader.requested == []
    assert result.applied == () and result.skipped == ()
