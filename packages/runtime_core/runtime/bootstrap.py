"""Composition root: configuration normalization and baseline registration."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from packages.runtime_core.plugins import PluginLoader, PluginRunResult, add_plugins
from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.component_registration import (
    make_default_component_registry,
)
from packages.runtime_shared.config import (
    ConfigurationView,
    load_directory_configuration,
)
from packages.runtime_shared.logging import fields, get_logger

from .core_bot import add_core_bot
from .features import MiddlewareSet, add_features
from .resources import add_resource_explorer
from .skills import add_credentials, add_skills
from .storage import add_storage
from .telemetry import add_telemetry

_LOGGER = get_logger(__name__)

ROOT_DIALOG_SUFFIX = ".dialog"


@dataclass(frozen=True, slots=True)
class RuntimeServices:
    """Outcome of one composition run."""

    services: ServiceCollection
    configuration: ConfigurationView
    plugins: PluginRunResult


def find_root_dialog(application_root: Path) -> str | None:
    """Return the first ``*.dialog`` file name in the root, sorted by name."""
    candidates = sorted(
        entry.name
        for entry in application_root.iterdir()
        if entry.is_file() and entry.name.endswith(ROOT_DIALOG_SUFFIX)
    )
    return candidates[0] if candidates else None


async def normalize_configuration(
    configuration: ConfigurationView, application_root: Path
) -> None:
    """Override ``applicationRoot`` and ``defaultRootDialog`` with computed values."""
    configuration.set(("applicationRoot",), str(application_root))
    configuration.set(
        ("defaultRootDialog",),
        await asyncio.to_thread(find_root_dialog, application_root),
    )


def seed_services() -> ServiceCollection:
    """Return a collection seeded with the keys plugins are expected to compose onto."""
    return ServiceCollection(
        seeds={
            "componentRegistration": make_default_component_registry,
            "customAdapters": dict,
            "middlewares": MiddlewareSet,
        }
    )


def register_baseline_services(
    services: ServiceCollection, configuration: ConfigurationView
) -> None:
    """Register the built-in service catalog against ``configuration``."""
    runtime_settings = configuration.bind(("runtimeSettings",))

    add_resource_explorer(services, configuration)
    add_core_bot(services, configuration)
    add_features(services, runtime_settings.bind(("features",)))
    add_credentials(services, configuration)
    add_skills(services, runtime_settings.bind(("skills",)))
    add_storage(services, configuration)
    add_telemetry(services, runtime_settings.bind(("telemetry",)))


async def get_runtime_services(
    application_root: str | Path,
    configuration_or_settings_directory: ConfigurationView | str | Path,
    *,
    plugin_loader: PluginLoader | None = None,
) -> RuntimeServices:
    """Construct the runtime service graph without instantiating any service.

    Args:
        application_root: Directory holding the application's resources.
        configuration_or_settings_directory: A fully initialized configuration,
            or the directory holding ``appsettings.Development.json`` and
            ``appsettings.json``.
        plugin_loader: Loader used to resolve plugin names to entry points.
    """
    root = Path(application_root).resolve()
    if isinstance(configuration_or_settings_directory, ConfigurationView):
        configuration = configuration_or_settings_directory
    else:
        configuration = load_directory_configuration(configuration_or_settings_directory)

    await normalize_configuration(configuration, root)

    services = seed_services()
    register_baseline_services(services, configuration)
    plugins = await add_plugins(services, configuration, plugin_loader)

    _LOGGER.info(
        "runtime services registered",
        extra={
            fields.APPLICATION_ROOT: str(root),
            fields.STAGE: "registration",
        },
    )
    return RuntimeServices(services=services, configuration=configuration, plugins=plugins)
