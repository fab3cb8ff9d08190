"""Telemetry client selection and the telemetry middleware built on it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.config import ConfigurationView


class NullTelemetryClient:
    """Telemetry client that discards every event."""

    def track_event(self, name: str, properties: dict[str, Any] | None = None) -> None:
        return None


@dataclass(frozen=True, slots=True)
class ApplicationInsightsTelemetryClient:
    """Telemetry client addressed by an Application Insights instrumentation key."""

    instrumentation_key: str


@dataclass(frozen=True, slots=True)
class TelemetryLoggerMiddleware:
    telemetry_client: Any
    log_personal_information: bool


@dataclass(frozen=True, slots=True)
class TelemetryInitializerMiddleware:
    logger_middleware: TelemetryLoggerMiddleware
    log_activities: bool


def add_telemetry(services: ServiceCollection, configuration: ConfigurationView) -> None:
    """Register ``botTelemetryClient`` and ``telemetryMiddleware``.

    ``configuration`` is the ``runtimeSettings.telemetry`` view.
    """

    def make_client(_dependencies: Any) -> Any:
        instrumentation_key = configuration.get_string(("instrumentationKey",))
        if instrumentation_key:
            return ApplicationInsightsTelemetryClient(instrumentation_key)
        return NullTelemetryClient()

    services.add_factory("botTelemetryClient", make_client)
    services.add_factory(
        "telemetryMiddleware",
        ["botTelemetryClient"],
        lambda dependencies: TelemetryInitializerMiddleware(
            TelemetryLoggerMiddleware(
                dependencies["botTelemetryClient"],
                configuration.get_bool(("logPersonalInformation",)),
            ),
            configuration.get_bool(("logActivities",)),
        ),
    )
