"""Storage backend selection and the conversation/user state built on it."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from packages.runtime_core.services import ServiceCollection
from packages.runtime_shared.config import (
    BlobsStorageSettings,
    ConfigurationView,
    CosmosDbPartitionedStorageSettings,
)
from packages.runtime_shared.logging import get_logger

_LOGGER = get_logger(__name__)

BLOBS_STORAGE = "BlobsStorage"
COSMOS_DB_PARTITIONED_STORAGE = "CosmosDbPartitionedStorage"


class MemoryStorage:
    """Process-local key/value storage; the default backend."""

    def __init__(self) -> None:
        self._items: dict[str, Any] = {}

    async def read(self, keys: Iterable[str]) -> dict[str, Any]:
        return {
            key: copy.deepcopy(self._items[key]) for key in keys if key in self._items
        }

    async def write(self, changes: Mapping[str, Any]) -> None:
        for key, value in changes.items():
            self._items[key] = copy.deepcopy(value)

    async def delete(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._items.pop(key, None)


@dataclass(frozen=True, slots=True)
class BlobsStorage:
    """Blob container storage backend."""

    connection_string: str
    container_name: str


@dataclass(frozen=True, slots=True)
class CosmosDbPartitionedStorage:
    """Cosmos DB partitioned storage backend."""

    options: CosmosDbPartitionedStorageSettings


@dataclass(slots=True)
class BotState:
    """State property bag persisted through one storage backend."""

    storage: Any
    state_name: str = "BotState"


def conversation_state(storage: Any) -> BotState:
    return BotState(storage, "ConversationState")


def user_state(storage: Any) -> BotState:
    return BotState(storage, "UserState")


def select_storage(configuration: ConfigurationView) -> Any:
    """Build the backend named by ``runtimeSettings.storage``.

    Raises:
        ConfigurationRequirementError: If the selected backend's connection
            record is absent or invalid.
    """
    backend = configuration.get_string(("runtimeSettings", "storage"))

    if backend == BLOBS_STORAGE:
        settings = configuration.require((BLOBS_STORAGE,), BlobsStorageSettings)
        storage: Any = BlobsStorage(settings.connection_string, settings.container_name)
    elif backend == COSMOS_DB_PARTITIONED_STORAGE:
        options = configuration.require(
            (COSMOS_DB_PARTITIONED_STORAGE,), CosmosDbPartitionedStorageSettings
        )
        storage = CosmosDbPartitionedStorage(options)
    else:
        storage = MemoryStorage()

    _LOGGER.info("storage backend selected: %s", type(storage).__name__)
    return storage


def add_storage(services: ServiceCollection, configuration: ConfigurationView) -> None:
    """Register ``storage``, ``conversationState`` and ``userState``."""
    services.add_factory(
        "conversationState",
        ["storage"],
        lambda dependencies: conversation_state(dependencies["storage"]),
    )
    services.add_factory(
        "userState",
        ["storage"],
        lambda dependencies: user_state(dependencies["storage"]),
    )
    services.add_factory("storage", lambda _dependencies: select_storage(configuration))
