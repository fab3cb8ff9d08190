"""Tests for factory registration, composition, resolution and memoization."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from packages.runtime_core.services import (
    DependencyCycleError,
    DuplicateFactoryError,
    MissingProducerError,
    RegistryFrozenError,
    ServiceCollection,
    SlotState,
)


@pytest.mark.asyncio
async def test_resolve_builds_dependencies_before_dependents() -> None:
    """Dependencies should be resolved depth-first and passed by key."""
    order: list[str] = []
    services = ServiceCollection()

    def make_storage(_dependencies: Any) -> str:
        order.append("storage")
        return "storage"

    def make_state(dependencies: Any) -> tuple[str, str]:
        order.append("state")
        return ("state", dependencies["storage"])

    services.add_factory("state", ["storage"], make_state)
    services.add_factory("storage", make_storage)

    assert await services.resolve("state") == ("state", "storage")
    assert order == ["storage", "state"]


@pytest.mark.asyncio
async def test_factory_receives_only_declared_dependencies() -> None:
    """A factory's mapping should contain exactly its declared keys."""
    seen: dict[str, Any] = {}
    services = ServiceCollection()
    services.add_instance("a", 1)
    services.add_instance("b", 2)
    services.add_factory("c", ["a"], lambda dependencies: seen.update(dependencies))

    await services.resolve("b")
    await services.resolve("c")

    assert seen == {"a": 1}


@pytest.mark.asyncio
async def test_composers_apply_in_registration_order_over_seeded_default() -> None:
    """Given composers C1 then C2 over default D, the value should be C2(C1(D))."""
    services = ServiceCollection({"middlewares": ["D"]})
    services.compose_factory("middlewares", lambda _deps, value: [*value, "C1"])
    services.compose_factory("middlewares", lambda _deps, value: [*value, "C2"])

    assert await services.resolve("middlewares") == ["D", "C1", "C2"]


@pytest.mark.asyncio
async def test_composers_fold_over_factory_output_with_their_own_dependencies() -> None:
    """Composers should receive their declared dependencies and the current value."""
    services = ServiceCollection()
    services.add_instance("suffix", "!")
    services.compose_factory(
        "greeting", ["suffix"], lambda deps, value: value + deps["suffix"]
    )
    services.add_factory("greeting", lambda _deps: "hello")

    assert await services.resolve("greeting") == "hello!"


@pytest.mark.asyncio
async def test_async_factories_and_composers_are_awaited() -> None:
    """Factories and composers may return awaitables."""
    services = ServiceCollection()

    async def make(_deps: Any) -> int:
        await asyncio.sleep(0)
        return 1

    async def add_one(_deps: Any, value: int) -> int:
        await asyncio.sleep(0)
        return value + 1

    services.add_factory("counter", make)
    services.compose_factory("counter", add_one)

    assert await services.resolve("counter") == 2


@pytest.mark.asyncio
async def test_resolve_memoizes_and_never_reinvokes_factory_or_composers() -> None:
    """Repeated resolution should return the identical object without rebuilding."""
    calls = {"factory": 0, "composer": 0}
    services = ServiceCollection()

    def make(_deps: Any) -> object:
        calls["factory"] += 1
        return object()

    def compose(_deps: Any, value: object) -> object:
        calls["composer"] += 1
        return value

    services.add_factory("thing", make)
    services.compose_factory("thing", compose)

    first = await services.resolve("thing")
    second = await services.resolve("thing")

    assert first is second
    assert calls == {"factory": 1, "composer": 1}
    assert services.state("thing") is SlotState.RESOLVED


@pytest.mark.parametrize("seed_first", [True, False])
def test_second_initial_factory_is_rejected(seed_first: bool) -> None:
    """Two initial producers for one key should be rejected in any order."""
    services = ServiceCollection()
    if seed_first:
        services.add_instance("storage", "memory")
        with pytest.raises(DuplicateFactoryError):
            services.add_factory("storage", lambda _deps: "blobs")
    else:
        services.add_factory("storage", lambda _deps: "blobs")
        with pytest.raises(DuplicateFactoryError):
            services.add_instance("storage", "memory")


def test_factory_on_seeded_key_is_rejected() -> None:
    """A seeded default should count as the key's initial producer."""
    services = ServiceCollection({"customAdapters": {}})

    with pytest.raises(DuplicateFactoryError) as exc_info:
        services.add_factory("customAdapters", lambda _deps: {})

    assert exc_info.value.key == "customAdapters"


@pytest.mark.asyncio
async def test_resolve_without_producer_is_fatal() -> None:
    """Resolving a key nobody produces should raise naming the key."""
    services = ServiceCollection()

    with pytest.raises(MissingProducerError) as exc_info:
        await services.resolve("missing")

    assert exc_info.value.key == "missing"


@pytest.mark.asyncio
async def test_composer_without_producer_fails_at_resolution_time() -> None:
    """Composing onto an unproduced key is accepted until the key is resolved."""
    services = ServiceCollection()
    services.compose_factory("orphan", lambda _deps, value: value)

    assert "orphan" not in services
    with pytest.raises(MissingProducerError):
        await services.resolve("orphan")


@pytest.mark.asyncio
async def test_missing_transitive_dependency_names_requesting_chain() -> None:
    """A missing dependency should report the chain that required it."""
    calls: list[str] = []
    services = ServiceCollection()
    services.add_factory("bot", ["state"], lambda _deps: calls.append("bot"))
    services.add_factory("state", ["storage"], lambda _deps: calls.append("state"))

    with pytest.raises(MissingProducerError) as exc_info:
        await services.resolve("bot")

    assert exc_info.value.key == "storage"
    assert exc_info.value.chain == ("bot", "state")
    assert calls == []


@pytest.mark.asyncio
async def test_two_node_cycle_is_detected_before_any_factory_runs() -> None:
    """A depends on B and B depends on A should be reported as a cycle."""
    calls: list[str] = []
    services = ServiceCollection()
    services.add_factory("a", ["b"], lambda _deps: calls.append("a"))
    services.add_factory("b", ["a"], lambda _deps: calls.append("b"))

    with pytest.raises(DependencyCycleError) as exc_info:
        await services.resolve("a")

    assert exc_info.value.cycle == ("a", "b", "a")
    assert calls == []


@pytest.mark.asyncio
async def test_cycle_through_composer_dependency_is_detected() -> None:
    """Composer dependencies should participate in cycle detection."""
    services = ServiceCollection({"middlewares": []})
    services.add_factory("adapter", ["middlewares"], lambda _deps: "adapter")
    services.compose_factory("middlewares", ["adapter"], lambda _deps, value: value)

    with pytest.raises(DependencyCycleError):
        await services.resolve("adapter")


@pytest.mark.asyncio
async def test_self_dependency_is_a_cycle() -> None:
    """A key depending on itself should be reported as a cycle."""
    services = ServiceCollection()
    services.add_factory("loop", ["loop"], lambda _deps: None)

    with pytest.raises(DependencyCycleError) as exc_info:
        await services.resolve("loop")

    assert exc_info.value.cycle == ("loop", "loop")


@pytest.mark.asyncio
async def test_factory_error_propagates_unmemoized_and_retries() -> None:
    """A failing factory should not be cached; a later resolve re-attempts."""
    attempts = {"count": 0}
    services = ServiceCollection()

    def flaky(_deps: Any) -> str:
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise RuntimeError("backend unavailable")
        return "ready"

    services.add_factory("storage", flaky)

    with pytest.raises(RuntimeError, match="backend unavailable"):
        await services.resolve("storage")
    assert services.state("storage") is SlotState.REGISTERED

    assert await services.resolve("storage") == "ready"
    assert attempts["count"] == 2


@pytest.mark.asyncio
async def test_retry_after_composer_failure_starts_from_a_fresh_seed() -> None:
    """A retried resolution should fold the composers over an untouched default."""
    attempts = {"count": 0}
    services = ServiceCollection({"middlewares": []})

    def flaky(_deps: Any, value: list[str]) -> list[str]:
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise RuntimeError("plugin not ready")
        value.append("plugin")
        return value

    services.compose_factory(
        "middlewares", lambda _deps, value: value.append("typing") or value
    )
    services.compose_factory("middlewares", flaky)

    with pytest.raises(RuntimeError, match="plugin not ready"):
        await services.resolve("middlewares")

    assert await services.resolve("middlewares") == ["typing", "plugin"]


@pytest.mark.asyncio
async def test_seed_factories_build_a_new_value_per_attempt() -> None:
    """Seeds given as callables should be invoked once per resolution attempt."""
    built: list[list[str]] = []
    attempts = {"count": 0}

    def make_seed() -> list[str]:
        seed: list[str] = []
        built.append(seed)
        return seed

    def compose(_deps: Any, value: list[str]) -> list[str]:
        attempts["count"] += 1
        value.append("composed")
        if attempts["count"] == 1:
            raise RuntimeError("first attempt fails")
        return value

    services = ServiceCollection(seeds={"middlewares": make_seed})
    services.compose_factory("middlewares", compose)

    with pytest.raises(RuntimeError):
        await services.resolve("middlewares")
    value = await services.resolve("middlewares")

    assert value == ["composed"]
    assert len(built) == 2 and value is built[1]


@pytest.mark.asyncio
async def test_registration_after_resolution_is_rejected() -> None:
    """Resolved keys should be frozen against further registration."""
    services = ServiceCollection({"middlewares": []})
    await services.resolve("middlewares")

    with pytest.raises(RegistryFrozenError):
        services.compose_factory("middlewares", lambda _deps, value: value)


def test_dependencies_must_be_a_sequence_of_keys() -> None:
    """A bare string should not be accepted as a dependency list."""
    services = ServiceCollection()

    with pytest.raises(TypeError):
        services.add_factory("bot", "storage", lambda _deps: None)


@pytest.mark.asyncio
async def test_resolve_all_returns_every_key_in_registration_order() -> None:
    """resolve_all should resolve every registered key."""
    services = ServiceCollection({"seed": 0})
    services.add_factory("next", ["seed"], lambda deps: deps["seed"] + 1)

    assert await services.resolve_all() == {"seed": 0, "next": 1}
    assert services.keys() == ("seed", "next")
