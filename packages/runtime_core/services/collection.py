"""Name-keyed registry of lazily constructed, composable singleton services."""

from __future__ import annotations

import asyncio
import copy
import inspect
from collections.abc import Callable, Iterable, Mapping, Sequence
from functools import partial
from types import MappingProxyType
from typing import Any

from packages.runtime_shared.logging import fields, get_logger, resolution_scope

from .contracts import (
    Composer,
    Construct,
    DependencyCycleError,
    DuplicateFactoryError,
    Factory,
    MissingProducerError,
    Producer,
    RegistryFrozenError,
    SeededDefault,
    ServiceKey,
    ServiceSlot,
    SlotState,
    Transform,
)

_LOGGER = get_logger(__name__)


class _ResolutionAbandoned(Exception):
    """Set on an in-flight future whose owning task was cancelled."""


class ServiceCollection:
    """Registry of service factories and composers, resolved on demand.

    Each key has at most one initial producer (a factory, an instance or a
    seeded default) and any number of composers. Resolving a key resolves its
    declared dependencies depth-first, runs the producer, folds the composers in
    registration order and memoizes the result for the life of the collection.

    Args:
        defaults: Values seeded as initial producers, so composers may target
            them before any factory exists. Each resolution attempt starts from
            a deep copy.
        seeds: Zero-argument callables producing a fresh seed value per
            attempt, for seeds that cannot be deep-copied.
    """

    def __init__(
        self,
        defaults: Mapping[ServiceKey, Any] | None = None,
        *,
        seeds: Mapping[ServiceKey, Callable[[], Any]] | None = None,
    ) -> None:
        self._slots: dict[ServiceKey, ServiceSlot] = {}
        for key, value in (defaults or {}).items():
            snapshot = copy.deepcopy(value)
            self._set_producer(key, SeededDefault(key, partial(copy.deepcopy, snapshot)))
        for key, make in (seeds or {}).items():
            self._set_producer(key, SeededDefault(key, make))

    def add_factory(
        self,
        key: ServiceKey,
        dependencies: Sequence[ServiceKey] | Construct,
        construct: Construct | None = None,
    ) -> None:
        """Register the sole initial factory for ``key``.

        Accepts ``add_factory(key, construct)`` for a factory without
        dependencies, or ``add_factory(key, dependencies, construct)``.

        Raises:
            DuplicateFactoryError: If ``key`` already has an initial producer.
            RegistryFrozenError: If ``key`` is resolving or resolved.
        """
        declared, construct = _split_dependencies(key, dependencies, construct)
        self._set_producer(key, Factory(key, declared, construct))

    def compose_factory(
        self,
        key: ServiceKey,
        dependencies: Sequence[ServiceKey] | Transform,
        transform: Transform | None = None,
    ) -> None:
        """Append a composer that transforms the current value of ``key``.

        A producer for ``key`` is not required yet; its absence is reported when
        ``key`` is resolved.
        """
        declared, transform = _split_dependencies(key, dependencies, transform)
        slot = self._writable_slot(key)
        slot.composers.append(Composer(key, declared, transform))
        _LOGGER.debug(
            "service composer registered",
            extra={
                fields.SERVICE_KEY: key,
                fields.DEPENDENCIES: list(declared),
                fields.COMPOSER_COUNT: len(slot.composers),
            },
        )

    def add_instance(self, key: ServiceKey, value: Any) -> None:
        """Register a pre-built value as the initial producer for ``key``."""
        self._set_producer(key, Factory(key, (), lambda _dependencies: value))

    async def resolve(self, key: ServiceKey) -> Any:
        """Return the memoized value for ``key``, constructing it on first use.

        Raises:
            MissingProducerError: If ``key`` or a transitive dependency has no
                producer.
            DependencyCycleError: If the reachable dependency graph has a cycle.
        """
        slot = self._slots.get(key)
        if slot is not None and slot.state is SlotState.RESOLVED:
            return slot.value
        self._validate_graph(key)
        return await self._resolve(key, ())

    async def resolve_many(self, keys: Iterable[ServiceKey]) -> dict[ServiceKey, Any]:
        """Resolve several keys sequentially, in the given order."""
        resolved: dict[ServiceKey, Any] = {}
        for key in keys:
            resolved[key] = await self.resolve(key)
        return resolved

    async def resolve_all(self) -> dict[ServiceKey, Any]:
        """Resolve every registered key in registration order."""
        return await self.resolve_many(tuple(self._slots))

    def keys(self) -> tuple[ServiceKey, ...]:
        """Return every key with a producer or composer, in registration order."""
        return tuple(self._slots)

    def state(self, key: ServiceKey) -> SlotState:
        slot = self._slots.get(key)
        return slot.state if slot is not None else SlotState.UNREGISTERED

    def __contains__(self, key: object) -> bool:
        slot = self._slots.get(key) if isinstance(key, str) else None
        return slot is not None and slot.producer is not None

    def _set_producer(self, key: ServiceKey, producer: Producer) -> None:
        slot = self._writable_slot(key)
        if slot.producer is not None:
            raise DuplicateFactoryError(key)
        slot.producer = producer
        slot.state = SlotState.REGISTERED
        _LOGGER.debug(
            "service producer registered",
            extra={
                fields.SERVICE_KEY: key,
                fields.DEPENDENCIES: list(producer.dependencies),
            },
        )

    def _writable_slot(self, key: ServiceKey) -> ServiceSlot:
        if not isinstance(key, str) or not key:
            raise ValueError(f"service key must be a non-empty string: {key!r}")
        slot = self._slots.get(key)
        if slot is None:
            slot = ServiceSlot(key)
            self._slots[key] = slot
        if slot.state in (SlotState.RESOLVING, SlotState.RESOLVED):
            raise RegistryFrozenError(key)
        return slot

    def _validate_graph(self, root: ServiceKey) -> None:
        """Depth-first walk with an in-progress marker over declared dependencies."""
        in_progress: list[ServiceKey] = []
        checked: set[ServiceKey] = set()

        def visit(key: ServiceKey) -> None:
            if key in checked:
                return
            if key in in_progress:
                start = in_progress.index(key)
                raise DependencyCycleError((*in_progress[start:], key))
            slot = self._slots.get(key)
            if slot is not None and slot.state is SlotState.RESOLVED:
                checked.add(key)
                return
            if slot is None or slot.producer is None:
                raise MissingProducerError(key, tuple(in_progress))

            in_progress.append(key)
            for dependency in slot.dependencies:
                visit(dependency)
            in_progress.pop()
            checked.add(key)

        visit(root)

    async def _resolve(self, key: ServiceKey, chain: tuple[ServiceKey, ...]) -> Any:
        if key in chain:
            raise DependencyCycleError((*chain[chain.index(key) :], key))

        slot = self._slots.get(key)
        if slot is None or slot.producer is None:
            raise MissingProducerError(key, chain)
        if slot.state is SlotState.RESOLVED:
            return slot.value
        if slot.in_flight is not None:
            try:
                return await asyncio.shield(slot.in_flight)
            except _ResolutionAbandoned:
                # The owner was cancelled; take over construction.
                return await self._resolve(key, chain)

        in_flight: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        slot.in_flight = in_flight
        slot.state = SlotState.RESOLVING
        try:
            with resolution_scope(key):
                value = await self._construct(slot, (*chain, key))
        except BaseException as exc:
            slot.in_flight = None
            slot.state = SlotState.REGISTERED
            outcome = (
                _ResolutionAbandoned(key)
                if isinstance(exc, asyncio.CancelledError)
                else exc
            )
            in_flight.set_exception(outcome)
            # Waiters re-raise it themselves; mark it retrieved for the loop.
            in_flight.exception()
            raise

        slot.value = value
        slot.state = SlotState.RESOLVED
        slot.in_flight = None
        in_flight.set_result(value)
        _LOGGER.info(
            "service resolved",
            extra={
                fields.SERVICE_KEY: key,
                fields.COMPOSER_COUNT: len(slot.composers),
            },
        )
        return value

    async def _construct(self, slot: ServiceSlot, chain: tuple[ServiceKey, ...]) -> Any:
        resolved: dict[ServiceKey, Any] = {}
        for dependency in slot.dependencies:
            resolved[dependency] = await self._resolve(dependency, chain)

        producer = slot.producer
        if isinstance(producer, SeededDefault):
            value = producer.make()
        else:
            value = await _maybe_await(
                producer.construct(_select(resolved, producer.dependencies))
            )

        for composer in slot.composers:
            value = await _maybe_await(
                composer.transform(_select(resolved, composer.dependencies), value)
            )
        return value


def _split_dependencies(
    key: ServiceKey,
    dependencies: Sequence[ServiceKey] | Any,
    callback: Any,
) -> tuple[tuple[ServiceKey, ...], Any]:
    if callback is None:
        dependencies, callback = (), dependencies
    if not callable(callback):
        raise TypeError(f"service '{key}' registration requires a callable")
    if isinstance(dependencies, str):
        raise TypeError(
            f"service '{key}' dependencies must be a sequence of keys, not str"
        )
    declared = tuple(dependencies)
    for dependency in declared:
        if not isinstance(dependency, str) or not dependency:
            raise TypeError(
                f"service '{key}' dependencies must contain only non-empty strings"
            )
    return declared, callback


def _select(
    resolved: Mapping[ServiceKey, Any], keys: tuple[ServiceKey, ...]
) -> Mapping[ServiceKey, Any]:
    return MappingProxyType({key: resolved[key] for key in keys})


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
