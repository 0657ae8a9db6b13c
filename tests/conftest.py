"""Pytest configuration and fixtures for haulengine tests."""

import os

import pytest

import haulengine.events  # noqa: F401 - register all events
from haulengine import logging
from haulengine.core.registry import clear_registry
from haulengine.pathfinding import GridPathFinder
from haulengine.roles import Position
from haulengine.scheduler import Scheduler
from haulengine.world import InMemoryWorld


@pytest.fixture
def clean_registry():
    """
    Save registry state, clear it for the test, then restore it.

    This fixture should be explicitly requested by tests that need isolation
    from the built-in events or from test pollution by other test modules.

    DO NOT use autouse=True, as it would interfere with integration tests
    that rely on the built-in events being registered.
    """
    # noinspection PyProtectedMember
    from haulengine.core.registry import _EVENT_REGISTRY

    saved_events = dict(_EVENT_REGISTRY)

    clear_registry()

    yield

    _EVENT_REGISTRY.clear()
    _EVENT_REGISTRY.update(saved_events)


@pytest.fixture
def world() -> InMemoryWorld:
    """One observed zone ``W1N1`` with no source output."""
    w = InMemoryWorld()
    w.add_zone("W1N1")
    return w


@pytest.fixture
def pathfinder() -> GridPathFinder:
    """Open-plain pathfinder with small zones so searches stay fast."""
    return GridPathFinder(default_size=25)


@pytest.fixture
def tiny_sched(world: InMemoryWorld, pathfinder: GridPathFinder) -> Scheduler:
    """
    A small scheduler: one container, one empty hauler, one loaded hauler
    and an empty spawn, all in ``W1N1``.
    """
    sched = Scheduler.init(world, pathfinder)
    state = sched.state

    state.register_store(
        "c1", "container", Position(5, 5, "W1N1"), current=400, capacity=2000
    )
    world.set_energy("c1", 400, 2000)

    state.register_consumer(
        "spawn1", "spawn", Position(15, 15, "W1N1"), current=0, capacity=300
    )
    world.set_energy("spawn1", 0, 300)

    state.register_carrier(
        "h_empty", "hauler", Position(7, 5, "W1N1"), current=0, capacity=100
    )
    state.register_carrier(
        "h_full", "hauler", Position(14, 12, "W1N1"), current=100, capacity=100
    )
    return sched


@pytest.fixture(autouse=True)
def mute_haulengine_logs(caplog):
    # Optimize log level based on context:
    # - CI coverage run: DEBUG to execute all logging for accurate coverage
    # - All other runs (local and non-coverage CI runs): ERROR for faster tests
    if os.environ.get("COVERAGE_RUN") == "true":
        level = logging.DEBUG
    else:
        level = logging.ERROR

    # Set both caplog level (for capture) and actual logger level
    caplog.set_level(level, logger="haulengine")
    logging.getLogger("haulengine").setLevel(level)
