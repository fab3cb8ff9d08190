"""Configuration error types."""

from __future__ import annotations

from collections.abc import Sequence


class ConfigurationError(ValueError):
    """Base error for invalid configuration input."""


class ConfigurationRequirementError(ConfigurationError):
    """Raised when a mandatory setting is absent or fails shape validation."""

    def __init__(self, path: Sequence[str], fields: Sequence[str] = ()) -> None:
        self.path = tuple(path)
        self.fields = tuple(fields)
        dotted = ".".join(self.path) or "<root>"
        if self.fields:
            detail = ", ".join(self.fields)
            message = f"required configuration '{dotted}' is invalid: {detail}"
        else:
            message = f"required configuration '{dotted}' is missing"
        super().__init__(message)
