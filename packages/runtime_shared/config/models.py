"""Typed configuration models for the bot runtime.

Records read from layered configuration use camelCase keys on the wire, so
they share :class:`SettingsRecord` with a camelCase alias generator. Process
settings for the entrypoint itself are resolved by pydantic-settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class SettingsRecord(BaseModel):
    """Base for structured records read from layered configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class PluginDescriptor(SettingsRecord):
    """One ``runtimeSettings.plugins`` entry."""

    name: str = Field(min_length=1)
    settings_prefix: str | None = None

    @property
    def resolved_prefix(self) -> str:
        """Settings sub-tree bound for the plugin; defaults to its name."""
        return self.settings_prefix or self.name


class BlobsStorageSettings(SettingsRecord):
    """Connection parameters for the blob storage backend."""

    connection_string: str
    container_name: str


class BlobsTranscriptSettings(SettingsRecord):
    """Connection parameters for the blob transcript store."""

    connection_string: str
    container_name: str


class CosmosDbPartitionedStorageSettings(SettingsRecord):
    """Connection parameters for the Cosmos DB partitioned storage backend."""

    auth_key: str | None = None
    compatibility_mode: bool | None = None
    container_id: str
    container_throughput: int | None = None
    cosmos_db_endpoint: str | None = None
    database_id: str
    key_suffix: str | None = None


class SetSpeakSettings(SettingsRecord):
    """Speech markup defaults applied to outgoing activities."""

    voice_font_name: str | None = None
    lang: str
    fallback_to_text_for_speech_if_empty: bool


class LoggingSettings(BaseModel):
    """Structured logging configuration for the runtime process."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "bot-runtime"
    environment: str = "dev"


class RuntimeProcessSettings(BaseSettings):
    """Process settings resolved from init kwargs, then ``BOT_RUNTIME_*`` env."""

    model_config = SettingsConfigDict(
        env_prefix="BOT_RUNTIME_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    application_root: Path = Field(default_factory=Path.cwd)
    settings_directory: Path | None = None
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def resolved_settings_directory(self) -> Path:
        """Settings directory, defaulting to ``<application_root>/settings``."""
        if self.settings_directory is not None:
            return self.settings_directory
        return self.application_root / "settings"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply runtime precedence: init > env."""
        return (init_settings, env_settings)


def load_process_settings(**cli_params: object) -> RuntimeProcessSettings:
    """Resolve process settings, dropping CLI params that were not supplied."""
    supplied = {key: value for key, value in cli_params.items() if value is not None}
    return RuntimeProcessSettings(**supplied)
