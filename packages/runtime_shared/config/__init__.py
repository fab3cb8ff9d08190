"""Public API for layered runtime configuration."""

from .errors import ConfigurationError, ConfigurationRequirementError
from .loader import load_configuration, load_directory_configuration
from .models import (
    BlobsStorageSettings,
    BlobsTranscriptSettings,
    CosmosDbPartitionedStorageSettings,
    LoggingSettings,
    PluginDescriptor,
    RuntimeProcessSettings,
    SetSpeakSettings,
    SettingsRecord,
    load_process_settings,
)
from .sources import (
    ConfigurationSource,
    argv_source,
    env_source,
    file_source,
)
from .view import ConfigPath, ConfigurationView, LayeredStore

__all__ = [
    "BlobsStorageSettings",
    "BlobsTranscriptSettings",
    "ConfigPath",
    "ConfigurationError",
    "ConfigurationRequirementError",
    "ConfigurationSource",
    "ConfigurationView",
    "CosmosDbPartitionedStorageSettings",
    "LayeredStore",
    "LoggingSettings",
    "PluginDescriptor",
    "RuntimeProcessSettings",
    "SetSpeakSettings",
    "SettingsRecord",
    "argv_source",
    "env_source",
    "file_source",
    "load_configuration",
    "load_directory_configuration",
    "load_process_settings",
]
