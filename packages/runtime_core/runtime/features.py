"""Cross-cutting middlewares contributed by feature toggles.

Features do not own the middleware collection. They compose onto the seeded
``middlewares`` key, so plugins composing after them append in order.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.config import (
    BlobsTranscriptSettings,
    ConfigurationView,
    SetSpeakSettings,
)
from packages.runtime_shared.logging import get_logger

_LOGGER = get_logger(__name__)


class MiddlewareSet:
    """Ordered, append-only collection of middlewares."""

    def __init__(self) -> None:
        self._middlewares: list[Any] = []

    def use(self, *middlewares: Any) -> MiddlewareSet:
        self._middlewares.extend(middlewares)
        return self

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._middlewares))

    def __len__(self) -> int:
        return len(self._middlewares)


@dataclass(frozen=True, slots=True)
class ShowTypingMiddleware:
    delay_seconds: float = 0.5
    period_seconds: float = 2.0


@dataclass(frozen=True, slots=True)
class SetSpeakMiddleware:
    voice_font_name: str | None
    lang: str
    fallback_to_text_for_speech_if_empty: bool


class ConsoleTranscriptLogger:
    """Transcript logger that writes each activity to the process log."""

    def log_activity(self, activity: Any) -> None:
        _LOGGER.info("transcript activity: %s", activity)


@dataclass(frozen=True, slots=True)
class BlobsTranscriptStore:
    connection_string: str
    container_name: str


@dataclass(frozen=True, slots=True)
class TranscriptLoggerMiddleware:
    transcript_logger: Any


@dataclass(frozen=True, slots=True)
class InspectionState:
    storage: Any


@dataclass(frozen=True, slots=True)
class InspectionMiddleware:
    inspection_state: InspectionState
    user_state: Any
    conversation_state: Any


def add_features(services: ServiceCollection, configuration: ConfigurationView) -> None:
    """Compose feature middlewares onto ``middlewares``.

    ``configuration`` is the ``runtimeSettings.features`` view. Middlewares are
    added in a fixed order: typing, speak, transcript, inspection.
    """

    def compose(dependencies: Any, middleware_set: MiddlewareSet) -> MiddlewareSet:
        if configuration.get_bool(("showTyping",)):
            middleware_set.use(ShowTypingMiddleware())

        set_speak = configuration.get_typed(("setSpeak",), SetSpeakSettings)
        if set_speak is not None:
            middleware_set.use(
                SetSpeakMiddleware(
                    set_speak.voice_font_name,
                    set_speak.lang,
                    set_speak.fallback_to_text_for_speech_if_empty,
                )
            )

        if configuration.get_bool(("traceTranscript",)):
            blobs_transcript = configuration.get_typed(
                ("blobTranscript",), BlobsTranscriptSettings
            )
            transcript_logger: Any = (
                BlobsTranscriptStore(
                    blobs_transcript.connection_string,
                    blobs_transcript.container_name,
                )
                if blobs_transcript is not None
                else ConsoleTranscriptLogger()
            )
            middleware_set.use(TranscriptLoggerMiddleware(transcript_logger))

        if configuration.get_bool(("useInspection",)):
            inspection_state = InspectionState(dependencies["storage"])
            middleware_set.use(
                InspectionMiddleware(
                    inspection_state,
                    dependencies["userState"],
                    dependencies["conversationState"],
                )
            )

        return middleware_set

    services.compose_factory(
        "middlewares", ["storage", "conversationState", "userState"], compose
    )
