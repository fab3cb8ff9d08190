"""Process entrypoint: compose the runtime service graph and report the outcome."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer

from packages.runtime_core.plugins import PluginError, PluginLoader
from packages.runtime_core.runtime import get_runtime_services
from packages.runtime_core.services import ServiceRegistryError
from packages.runtime_shared.component_registration import ComponentRegistrationError
from packages.runtime_shared.config import (
    ConfigurationError,
    ConfigurationView,
    load_directory_configuration,
    load_process_settings,
)
from packages.runtime_shared.logging import configure_logging, fields, get_logger

_LOGGER = get_logger(__name__)

SUCCESS_EXIT_CODE = 0
RUNTIME_ERROR_EXIT_CODE = 1
CONFIGURATION_ERROR_EXIT_CODE = 2

SERVING_KEYS = ("adapter", "channelServiceHandler")

_FATAL_CONFIGURATION_ERRORS = (
    ConfigurationError,
    ServiceRegistryError,
    PluginError,
    ComponentRegistrationError,
)

app = typer.Typer(no_args_is_help=True, help="Bot runtime composition root")


async def compose_runtime(
    application_root: Path,
    configuration: ConfigurationView,
    *,
    plugin_loader: PluginLoader | None = None,
) -> dict[str, Any]:
    """Register every service, then resolve the services needed to serve traffic."""
    runtime = await get_runtime_services(
        application_root, configuration, plugin_loader=plugin_loader
    )
    return await runtime.services.resolve_many(SERVING_KEYS)


def _diagnostic_fields(exc: BaseException) -> dict[str, Any]:
    """Collect the offending key, plugin or configuration path from one error."""
    extra: dict[str, Any] = {}
    key = getattr(exc, "key", None)
    if key is not None:
        extra[fields.SERVICE_KEY] = key
    plugin_name = getattr(exc, "plugin_name", None)
    if plugin_name is not None:
        extra[fields.PLUGIN_NAME] = plugin_name
    path = getattr(exc, "path", None)
    if path is not None:
        extra[fields.CONFIG_PATH] = ".".join(path)
    return extra


@app.callback()
def main() -> None:
    """Compose and validate the bot runtime service graph."""


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True}
)
def run(
    ctx: typer.Context,
    application_root: Path | None = typer.Option(
        None, help="Directory holding the application's resources"
    ),
    settings_directory: Path | None = typer.Option(
        None, help="Directory holding appsettings files"
    ),
    log_level: str | None = typer.Option(None, help="Root log level"),
    json_logs: bool | None = typer.Option(
        None, "--json-logs/--plain-logs", help="Emit JSON or plain log lines"
    ),
) -> None:
    """Build and resolve the service graph; extra --key=value options override settings."""
    logging_overrides = {
        key: value
        for key, value in {"level": log_level, "json_output": json_logs}.items()
        if value is not None
    }
    settings = load_process_settings(
        application_root=application_root,
        settings_directory=settings_directory,
        logging=logging_overrides or None,
    )
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )

    try:
        configuration = load_directory_configuration(
            settings.resolved_settings_directory, argv=list(ctx.args)
        )
        resolved = asyncio.run(compose_runtime(settings.application_root, configuration))
    except _FATAL_CONFIGURATION_ERRORS as exc:
        _LOGGER.error(
            "runtime composition rejected: %s", exc, extra=_diagnostic_fields(exc)
        )
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=CONFIGURATION_ERROR_EXIT_CODE) from exc
    except Exception as exc:
        _LOGGER.exception("runtime composition failed", extra=_diagnostic_fields(exc))
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=RUNTIME_ERROR_EXIT_CODE) from exc

    _LOGGER.info(
        "runtime composed",
        extra={fields.APPLICATION_ROOT: str(settings.application_root)},
    )
    typer.echo(f"composed: {', '.join(sorted(resolved))}")
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


if __name__ == "__main__":
    app()
