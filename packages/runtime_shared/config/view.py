"""Path-addressed, typed views over layered configuration sources."""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from packages.runtime_shared.logging import fields, get_logger

from .errors import ConfigurationRequirementError
from .sources import ConfigurationSource, overlay, set_nested

_LOGGER = get_logger(__name__)
_MISSING = object()

ConfigPath = str | Sequence[str]
TShape = TypeVar("TShape")


class LayeredStore:
    """Immutable ordered sources plus one mutable override layer checked first."""

    __slots__ = ("_sources", "_overrides")

    def __init__(self, sources: Sequence[ConfigurationSource]) -> None:
        self._sources = tuple(sources)
        self._overrides: dict[str, Any] = {}

    @property
    def sources(self) -> tuple[ConfigurationSource, ...]:
        return self._sources

    def lookup(self, path: tuple[str, ...]) -> Any:
        """Return the value at ``path`` or the module-private missing marker.

        The first layer defining ``path`` wins. When that value is a mapping,
        mappings found at the same path in lower layers are merged beneath it.
        """
        found = [
            value
            for value in (
                _walk(layer, path)
                for layer in (self._overrides, *(s.data for s in self._sources))
            )
            if value is not _MISSING
        ]
        if not found:
            return _MISSING

        winner = found[0]
        if not isinstance(winner, Mapping):
            return copy.deepcopy(winner)

        merged: dict[str, Any] = {}
        for value in reversed(found):
            if isinstance(value, Mapping):
                merged = overlay(merged, value)
        return merged

    def write(self, path: tuple[str, ...], value: Any) -> None:
        set_nested(self._overrides, path, copy.deepcopy(value))


class ConfigurationView:
    """Read/write projection of a :class:`LayeredStore` rooted at ``prefix``.

    Views created by :meth:`bind` share the same store, so an override written
    through any view is visible to every other view addressing that path.
    """

    __slots__ = ("_store", "_prefix")

    def __init__(
        self,
        store: LayeredStore,
        prefix: Sequence[str] = (),
    ) -> None:
        self._store = store
        self._prefix = tuple(prefix)

    @classmethod
    def from_sources(cls, sources: Sequence[ConfigurationSource]) -> ConfigurationView:
        """Build a root view over ``sources``, highest precedence first."""
        return cls(LayeredStore(sources))

    @property
    def prefix(self) -> tuple[str, ...]:
        return self._prefix

    def bind(self, prefix: ConfigPath) -> ConfigurationView:
        """Return a view whose paths are implicitly prefixed by ``prefix``."""
        return ConfigurationView(self._store, self._prefix + normalize_path(prefix))

    def get(self, path: ConfigPath = ()) -> Any:
        """Return the raw value at ``path`` or ``None`` when undefined."""
        value = self._store.lookup(self._full_path(path))
        return None if value is _MISSING else value

    def get_typed(self, path: ConfigPath, shape: type[TShape] | Any) -> TShape | None:
        """Return the value validated against ``shape``; invalid counts as absent."""
        full_path = self._full_path(path)
        raw = self._store.lookup(full_path)
        if raw is _MISSING:
            return None
        try:
            return _adapter_for(shape).validate_python(raw)
        except ValidationError as exc:
            _LOGGER.warning(
                "configuration value failed shape validation; treating as absent",
                extra={
                    fields.CONFIG_PATH: ".".join(full_path),
                    fields.ERRORS: _describe_errors(exc),
                },
            )
            return None

    def require(self, path: ConfigPath, shape: type[TShape] | Any) -> TShape:
        """Return the validated value at ``path`` or raise a requirement error."""
        full_path = self._full_path(path)
        raw = self._store.lookup(full_path)
        if raw is _MISSING or raw is None:
            raise ConfigurationRequirementError(full_path)
        try:
            return _adapter_for(shape).validate_python(raw)
        except ValidationError as exc:
            raise ConfigurationRequirementError(
                full_path, _describe_errors(exc)
            ) from exc

    def get_string(self, path: ConfigPath) -> str | None:
        value = self.get(path)
        return value if isinstance(value, str) else None

    def get_bool(self, path: ConfigPath) -> bool:
        value = self.get(path)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return False

    def set(self, path: ConfigPath, value: Any) -> None:
        """Write ``value`` into the override layer that outranks every source."""
        full_path = self._full_path(path)
        if not full_path:
            raise ValueError("cannot set configuration at the root path")
        self._store.write(full_path, value)

    def _full_path(self, path: ConfigPath) -> tuple[str, ...]:
        return self._prefix + normalize_path(path)

    def __repr__(self) -> str:
        return f"ConfigurationView(prefix={'.'.join(self._prefix)!r})"


def normalize_path(path: ConfigPath) -> tuple[str, ...]:
    """Normalize a dotted string or segment sequence into a path tuple."""
    if isinstance(path, str):
        segments: Sequence[str] = path.split(".") if path else ()
    else:
        segments = path
    normalized = tuple(segments)
    for segment in normalized:
        if not isinstance(segment, str) or not segment:
            raise ValueError(
                f"configuration path segments must be non-empty strings: {path!r}"
            )
    return normalized


@lru_cache(maxsize=None)
def _adapter_for(shape: Any) -> TypeAdapter[Any]:
    return TypeAdapter(shape)


def _describe_errors(exc: ValidationError) -> list[str]:
    described: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<value>"
        described.append(f"{location}: {error['msg']}")
    return described


def _walk(layer: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    cursor: Any = layer
    for segment in path:
        if not isinstance(cursor, Mapping) or segment not in cursor:
            return _MISSING
        cursor = cursor[segment]
    return cursor
