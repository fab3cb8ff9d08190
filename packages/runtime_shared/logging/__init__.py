"""Public logging API for the bot runtime.

Stdlib ``logging`` configured for stdout, plus context scopes that tag log
lines with the plugin being applied and the service chain being resolved.
"""

from .config import configure_logging, get_logger
from .context import (
    bind_context,
    clear_context,
    get_context,
    log_context,
    plugin_scope,
    resolution_scope,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "log_context",
    "plugin_scope",
    "resolution_scope",
]
