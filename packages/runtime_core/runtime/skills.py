"""Skill-to-skill handling: credentials, caller validation and the channel handler."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.config import ConfigurationView

ClaimsValidator = Callable[[Mapping[str, Any]], None]


class UnauthorizedCallerError(PermissionError):
    """Raised when a skill caller's application id is not allowed."""


@dataclass(frozen=True, slots=True)
class SimpleCredentialProvider:
    app_id: str
    app_password: str = ""

    def is_authentication_disabled(self) -> bool:
        return not self.app_id


@dataclass(frozen=True, slots=True)
class SkillConversationIdFactory:
    storage: Any


@dataclass(frozen=True, slots=True)
class SkillHttpClient:
    credential_provider: SimpleCredentialProvider
    conversation_id_factory: SkillConversationIdFactory


@dataclass(frozen=True, slots=True)
class AuthenticationConfiguration:
    required_endorsements: tuple[str, ...] = ()
    claims_validator: ClaimsValidator | None = None


@dataclass(frozen=True, slots=True)
class SkillHandler:
    adapter: Any
    bot: Any
    conversation_id_factory: SkillConversationIdFactory
    credential_provider: SimpleCredentialProvider
    authentication_configuration: AuthenticationConfiguration


def allowed_callers_claims_validator(allowed_callers: Sequence[str]) -> ClaimsValidator:
    """Return a validator admitting only the listed caller app ids (``*`` admits all)."""
    allowed = frozenset(allowed_callers)

    def validate(claims: Mapping[str, Any]) -> None:
        if "*" in allowed:
            return
        caller = claims.get("appid") or claims.get("azp")
        if caller not in allowed:
            raise UnauthorizedCallerError(
                f"skill caller '{caller}' is not in the list of allowed callers"
            )

    return validate


def add_credentials(services: ServiceCollection, configuration: ConfigurationView) -> None:
    """Register ``credentialProvider`` from the root configuration's app credentials."""
    services.add_instance(
        "credentialProvider",
        SimpleCredentialProvider(
            configuration.get_string(("MicrosoftAppId",)) or "",
            configuration.get_string(("MicrosoftAppPassword",)) or "",
        ),
    )


def add_skills(services: ServiceCollection, configuration: ConfigurationView) -> None:
    """Register skill clients, caller authentication and ``channelServiceHandler``.

    ``configuration`` is the ``runtimeSettings.skills`` view.
    """
    services.add_factory(
        "skillConversationIdFactory",
        ["storage"],
        lambda dependencies: SkillConversationIdFactory(dependencies["storage"]),
    )

    services.add_factory(
        "skillClient",
        ["credentialProvider", "skillConversationIdFactory"],
        lambda dependencies: SkillHttpClient(
            dependencies["credentialProvider"],
            dependencies["skillConversationIdFactory"],
        ),
    )

    def make_authentication_configuration(_dependencies: Any) -> AuthenticationConfiguration:
        allowed_callers = (
            configuration.get_typed(("allowedCallers",), list[str]) or []
        )
        return AuthenticationConfiguration(
            claims_validator=(
                allowed_callers_claims_validator(allowed_callers)
                if allowed_callers
                else None
            )
        )

    services.add_factory("authenticationConfiguration", make_authentication_configuration)

    services.add_factory(
        "channelServiceHandler",
        [
            "adapter",
            "bot",
            "skillConversationIdFactory",
            "credentialProvider",
            "authenticationConfiguration",
        ],
        lambda dependencies: SkillHandler(
            dependencies["adapter"],
            dependencies["bot"],
            dependencies["skillConversationIdFactory"],
            dependencies["credentialProvider"],
            dependencies["authenticationConfiguration"],
        ),
    )
