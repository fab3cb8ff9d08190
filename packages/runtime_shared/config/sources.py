"""Configuration sources with deterministic precedence.

A runtime configuration is an ordered list of sources, highest precedence
first. The standard cascade is:

1) CLI params
2) Environment variables
3) ``appsettings.Development.json``
4) ``appsettings.json``
5) Built-in defaults

Environment variable format:
- Optional prefix (none by default)
- Nested keys: ``__`` separator, case preserved
- Example: ``runtimeSettings__storage=BlobsStorage`` ->
  ``runtimeSettings.storage = "BlobsStorage"``

CLI format:
- ``--runtimeSettings.features.showTyping=true``
- ``--defaultLocale fr-FR``
- ``--useInspection`` (bare flag means ``True``)
"""

from __future__ import annotations

import copy
import json
import os
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import yaml

from .defaults import BUILTIN_DEFAULTS
from .errors import ConfigurationError

DEVELOPMENT_SETTINGS_FILE = "appsettings.Development.json"
BASE_SETTINGS_FILE = "appsettings.json"


@dataclass(frozen=True, slots=True)
class ConfigurationSource:
    """One named, immutable layer of configuration data."""

    name: str
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", copy_tree(self.data))


def argv_source(argv: Sequence[str], *, name: str = "argv") -> ConfigurationSource:
    """Build a source from ``--dotted.key=value`` style command-line tokens."""
    output: dict[str, Any] = {}
    tokens = list(argv)
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if not token.startswith("--") or token == "--":
            continue

        body = token[2:]
        if "=" in body:
            key, raw_value = body.split("=", 1)
            value: Any = coerce_scalar(raw_value)
        elif index < len(tokens) and not tokens[index].startswith("--"):
            key = body
            value = coerce_scalar(tokens[index])
            index += 1
        else:
            key, value = body, True

        path = [segment for segment in key.split(".") if segment]
        if path:
            set_nested(output, path, value)

    return ConfigurationSource(name, output)


def env_source(
    environ: Mapping[str, str] | None = None,
    *,
    prefix: str = "",
    separator: str = "__",
    name: str = "env",
) -> ConfigurationSource:
    """Map ``<prefix>a__b=value`` variables onto the nested setting ``a.b``."""
    output: dict[str, Any] = {}
    for key, raw_value in (os.environ if environ is None else environ).items():
        path = env_path(key, prefix=prefix, separator=separator)
        if path:
            set_nested(output, path, coerce_scalar(raw_value))
    return ConfigurationSource(name, output)


def env_path(key: str, *, prefix: str = "", separator: str = "__") -> tuple[str, ...]:
    """Return the settings path named by one variable, or ``()`` if it is not ours."""
    if not key.startswith(prefix):
        return ()
    segments = (segment.strip() for segment in key[len(prefix) :].split(separator))
    return tuple(segment for segment in segments if segment)


_FILE_PARSERS: dict[str, Callable[[IO[str]], Any]] = {
    ".json": json.load,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}


def file_source(path: str | Path) -> ConfigurationSource:
    """Load one JSON or YAML settings file; a missing file contributes nothing.

    Raises:
        ConfigurationError: If the file cannot be parsed or its top level is
            not a mapping.
    """
    resolved = Path(path)
    if not resolved.is_file():
        return ConfigurationSource(str(resolved), {})

    parse = _FILE_PARSERS.get(resolved.suffix.lower(), json.load)
    with resolved.open(encoding="utf-8") as handle:
        try:
            parsed = parse(handle)
        except (ValueError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"settings file {resolved} is malformed: {exc}") from exc

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, Mapping):
        raise ConfigurationError(
            f"settings file {resolved} must hold a mapping, not {type(parsed).__name__}"
        )
    return ConfigurationSource(str(resolved), parsed)


def standard_sources(
    *,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    settings_files: Iterable[str | Path] = (),
    env_prefix: str = "",
    defaults: Mapping[str, Any] | None = None,
) -> tuple[ConfigurationSource, ...]:
    """Build the standard cascade: CLI > env > files (in order) > defaults."""
    sources = [
        argv_source(argv if argv is not None else ()),
        env_source(environ, prefix=env_prefix),
        *(file_source(path) for path in settings_files),
        ConfigurationSource(
            "defaults", defaults if defaults is not None else BUILTIN_DEFAULTS
        ),
    ]
    return tuple(sources)


def set_nested(target: dict[str, Any], path: Sequence[str], value: Any) -> None:
    """Write ``value`` at ``path``, replacing any non-mapping along the way."""
    *parents, leaf = path
    for segment in parents:
        if not isinstance(target.get(segment), dict):
            target[segment] = {}
        target = target[segment]
    target[leaf] = value


def overlay(lower: Mapping[str, Any], upper: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``lower`` with ``upper`` laid over it; nested mappings combine."""
    combined = copy_tree(lower)
    for key, value in upper.items():
        below = combined.get(key)
        combined[key] = (
            overlay(below, value)
            if isinstance(below, dict) and isinstance(value, Mapping)
            else copy.deepcopy(value)
        )
    return combined


_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None, "none": None}


def coerce_scalar(raw: str) -> Any:
    """Interpret a command-line or environment string as bool, null, number or JSON."""
    text = raw.strip()
    if text.lower() in _LITERALS:
        return _LITERALS[text.lower()]
    if text[:1] in ("{", "["):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return raw
    for number in (int, float):
        try:
            return number(text)
        except ValueError:
            continue
    return raw


def copy_tree(value: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-copy ``value`` into plain dicts with string keys."""
    return {
        str(key): copy_tree(item) if isinstance(item, Mapping) else copy.deepcopy(item)
        for key, item in value.items()
    }
