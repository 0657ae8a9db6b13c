# tests/__init__.py

from tests.helpers.factories import (
    ScriptedPathFinder,
    mock_carrier,
    mock_consumer,
    mock_position,
    mock_producer,
    mock_state,
    mock_store,
)
from tests.helpers.invariants import assert_basic_invariants, assert_not_oversubscribed

__all__ = [
    "ScriptedPathFinder",
    "mock_position",
    "mock_producer",
    "mock_consumer",
    "mock_store",
    "mock_carrier",
    "mock_state",
    "assert_basic_invariants",
    "assert_not_oversubscribed",
]
