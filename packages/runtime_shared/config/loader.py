"""Configuration loading entrypoints."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from .sources import (
    BASE_SETTINGS_FILE,
    DEVELOPMENT_SETTINGS_FILE,
    standard_sources,
)
from .view import ConfigurationView


def load_configuration(
    *,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    settings_files: Iterable[str | Path] = (),
    env_prefix: str = "",
    defaults: Mapping[str, Any] | None = None,
) -> ConfigurationView:
    """Load a root configuration view by applying the standard cascade."""
    return ConfigurationView.from_sources(
        standard_sources(
            argv=argv,
            environ=environ,
            settings_files=settings_files,
            env_prefix=env_prefix,
            defaults=defaults,
        )
    )


def load_directory_configuration(
    settings_directory: str | Path,
    *,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    env_prefix: str = "",
) -> ConfigurationView:
    """Load configuration from the environment-specific and base settings files."""
    directory = Path(settings_directory)
    return load_configuration(
        argv=argv,
        environ=environ,
        settings_files=(
            directory / DEVELOPMENT_SETTINGS_FILE,
            directory / BASE_SETTINGS_FILE,
        ),
        env_prefix=env_prefix,
    )
