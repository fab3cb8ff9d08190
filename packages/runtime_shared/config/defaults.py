"""Built-in default configuration values for the bot runtime.

These defaults are the final fallback in the configuration cascade:
CLI params > ENV vars > settings files > built-in defaults.
"""

from __future__ import annotations

from typing import Any

BUILTIN_DEFAULTS: dict[str, Any] = {
    "defaultLocale": "en-US",
    "runtimeSettings": {
        "storage": "MemoryStorage",
        "features": {
            "showTyping": False,
            "traceTranscript": False,
            "useInspection": False,
        },
        "telemetry": {
            "logActivities": True,
            "logPersonalInformation": False,
        },
        "skills": {
            "allowedCallers": [],
        },
        "plugins": [],
    },
}
