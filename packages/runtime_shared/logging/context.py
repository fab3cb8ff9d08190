"""Context propagation helpers for structured logging.

The context lives in a ``contextvars`` variable, so fields bound while a
plugin is applied or a service is constructed reach every log line emitted
inside that block, including lines from awaited factories. Each asyncio task
sees its own copy.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

from . import fields

_EMPTY: Mapping[str, str] = MappingProxyType({})
_LOG_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar(
    "bot_runtime_log_context", default=_EMPTY
)

CHAIN_SEPARATOR = ">"


def get_context() -> dict[str, str]:
    """Return a copy of the fields bound in the current context."""
    return dict(_LOG_CONTEXT.get())


def _with_values(
    current: Mapping[str, str], values: Mapping[str, object]
) -> Mapping[str, str]:
    merged = dict(current)
    merged.update(
        (str(key), str(value)) for key, value in values.items() if value is not None
    )
    return MappingProxyType(merged)


def bind_context(**values: object) -> None:
    """Bind stringified values into the current context; ``None`` is skipped."""
    if values:
        _LOG_CONTEXT.set(_with_values(_LOG_CONTEXT.get(), values))


def clear_context(*keys: str) -> None:
    """Drop the named keys, or every key when none are named."""
    if not keys:
        _LOG_CONTEXT.set(_EMPTY)
        return
    remaining = {k: v for k, v in _LOG_CONTEXT.get().items() if k not in keys}
    _LOG_CONTEXT.set(MappingProxyType(remaining))


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of a block."""
    token = _LOG_CONTEXT.set(_with_values(_LOG_CONTEXT.get(), values))
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


@contextmanager
def plugin_scope(name: str, settings_prefix: str) -> Iterator[None]:
    """Tag log lines with the plugin being applied and its settings prefix."""
    with log_context({fields.PLUGIN_NAME: name, fields.SETTINGS_PREFIX: settings_prefix}):
        yield


@contextmanager
def resolution_scope(key: str) -> Iterator[None]:
    """Extend the resolution chain with ``key`` while it is being constructed."""
    parent = _LOG_CONTEXT.get().get(fields.RESOLUTION_CHAIN)
    chain = f"{parent}{CHAIN_SEPARATOR}{key}" if parent else key
    with log_context({fields.RESOLUTION_CHAIN: chain}):
        yield
