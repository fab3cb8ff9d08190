"""The core bot and the adapter that fronts it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.config import ConfigurationView

DEFAULT_LOCALE = "en-US"
DEFAULT_ROOT_DIALOG = "main.dialog"


@dataclass(frozen=True, slots=True)
class CoreBot:
    resource_explorer: Any
    user_state: Any
    conversation_state: Any
    skill_client: Any
    conversation_id_factory: Any
    telemetry_client: Any
    default_locale: str
    root_dialog: str


class CoreBotAdapter:
    """Channel adapter running every activity through its middleware pipeline."""

    def __init__(
        self,
        authentication_configuration: Any,
        conversation_state: Any,
        user_state: Any,
    ) -> None:
        self.authentication_configuration = authentication_configuration
        self.conversation_state = conversation_state
        self.user_state = user_state
        self.middlewares: list[Any] = []

    def use(self, middleware: Any) -> CoreBotAdapter:
        self.middlewares.append(middleware)
        return self


def add_core_bot(services: ServiceCollection, configuration: ConfigurationView) -> None:
    """Register ``bot`` and ``adapter`` against the root configuration."""
    services.add_factory(
        "bot",
        [
            "resourceExplorer",
            "userState",
            "conversationState",
            "skillClient",
            "skillConversationIdFactory",
            "botTelemetryClient",
        ],
        lambda dependencies: CoreBot(
            dependencies["resourceExplorer"],
            dependencies["userState"],
            dependencies["conversationState"],
            dependencies["skillClient"],
            dependencies["skillConversationIdFactory"],
            dependencies["botTelemetryClient"],
            configuration.get_string(("defaultLocale",)) or DEFAULT_LOCALE,
            configuration.get_string(("defaultRootDialog",)) or DEFAULT_ROOT_DIALOG,
        ),
    )

    def make_adapter(dependencies: Any) -> CoreBotAdapter:
        adapter = CoreBotAdapter(
            dependencies["authenticationConfiguration"],
            dependencies["conversationState"],
            dependencies["userState"],
        )
        adapter.use(dependencies["middlewares"])
        adapter.use(dependencies["telemetryMiddleware"])
        return adapter

    services.add_factory(
        "adapter",
        [
            "authenticationConfiguration",
            "conversationState",
            "userState",
            "middlewares",
            "telemetryMiddleware",
        ],
        make_adapter,
    )
