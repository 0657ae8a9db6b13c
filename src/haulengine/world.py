# src/haulengine/world.py
"""
Contracts with the host world, plus a dict-backed world for sandboxes.

The scheduler never inspects the world directly. Live energy readings and
withdrawals go through a :class:`WorldSensor`; travel costs through a
:class:`PathFinder`. Both are structural protocols so any object with the
right methods can be plugged in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, Sequence, runtime_checkable

from haulengine import logging
from haulengine.roles import Position
from haulengine.typing import EntityId, ZoneName

log = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Goal:
    """A target position and the range at which it counts as reached."""

    pos: Position
    range: int = 1


@dataclass(slots=True, frozen=True)
class CostModel:
    """Per-tile movement costs and the search budget of one path query."""

    plain_cost: int = 2
    swamp_cost: int = 10
    max_ops: int = 2000


@dataclass(slots=True)
class PathResult:
    """
    Result of a path query.

    ``path`` excludes the origin; its last step is the tile where the goal
    range was satisfied. ``incomplete`` is set when no goal was reached.
    """

    path: list[Position] = field(default_factory=list)
    incomplete: bool = False

    @property
    def cost(self) -> int:
        return len(self.path)


class WithdrawResult(Enum):
    """Outcome code of a world withdrawal."""

    OK = "ok"
    NOT_ENOUGH_RESOURCES = "not_enough_resources"
    FULL = "full"
    NOT_FOUND = "not_found"
    INVALID_TARGET = "invalid_target"


@runtime_checkable
class PathFinder(Protocol):
    def search(
        self,
        origin: Position,
        goals: Sequence[Goal],
        cost_model: CostModel,
    ) -> PathResult: ...


@runtime_checkable
class WorldSensor(Protocol):
    def observed_zones(self) -> list[ZoneName]: ...

    def zone_exists(self, zone: ZoneName) -> bool: ...

    def live_energy(self, entity_id: EntityId) -> int | None: ...

    def source_energy_per_tick(self, zone: ZoneName) -> float: ...

    def withdraw(
        self, requester_id: EntityId, source_id: EntityId, amount: int
    ) -> WithdrawResult: ...


class InMemoryWorld:
    """
    Dict-backed :class:`WorldSensor` for tests, notebooks and sandboxes.

    Examples
    --------
    >>> world = InMemoryWorld()
    >>> world.add_zone("W1N1", source_energy_per_tick=10.0)
    >>> world.set_energy("spawn1", 200, 300)
    >>> world.live_energy("spawn1")
    200
    """

    def __init__(self) -> None:
        self._zones: dict[ZoneName, bool] = {}
        self._source_rate: dict[ZoneName, float] = {}
        self._energy: dict[EntityId, list[int]] = {}

    # --- setup ---
    def add_zone(
        self,
        zone: ZoneName,
        *,
        observed: bool = True,
        source_energy_per_tick: float = 0.0,
    ) -> None:
        self._zones[zone] = observed
        self._source_rate[zone] = float(source_energy_per_tick)

    def set_observed(self, zone: ZoneName, observed: bool) -> None:
        self._zones[zone] = observed

    def set_energy(
        self, entity_id: EntityId, current: int, capacity: int | None = None
    ) -> None:
        if capacity is None:
            capacity = self._energy.get(entity_id, [0, current])[1]
        self._energy[entity_id] = [int(current), int(capacity)]

    def remove(self, entity_id: EntityId) -> None:
        self._energy.pop(entity_id, None)

    # --- WorldSensor ---
    def observed_zones(self) -> list[ZoneName]:
        return [zone for zone, observed in self._zones.items() if observed]

    def zone_exists(self, zone: ZoneName) -> bool:
        return zone in self._zones

    def live_energy(self, entity_id: EntityId) -> int | None:
        entry = self._energy.get(entity_id)
        return None if entry is None else entry[0]

    def source_energy_per_tick(self, zone: ZoneName) -> float:
        return self._source_rate.get(zone, 0.0)

    def withdraw(
        self, requester_id: EntityId, source_id: EntityId, amount: int
    ) -> WithdrawResult:
        """
        Move exactly *amount* energy from *source_id* to *requester_id*.

        All or nothing: a source holding less than *amount* gives
        ``NOT_ENOUGH_RESOURCES`` and a requester without room for it gives
        ``FULL``. Nothing moves in either case.
        """
        source = self._energy.get(source_id)
        if source is None:
            return WithdrawResult.NOT_FOUND
        requester = self._energy.get(requester_id)
        if requester is None:
            return WithdrawResult.INVALID_TARGET
        if amount <= 0 or source[0] < amount:
            return WithdrawResult.NOT_ENOUGH_RESOURCES
        if requester[1] - requester[0] < amount:
            return WithdrawResult.FULL

        source[0] -= amount
        requester[0] += amount
        log.debug("World: %s withdrew %d from %s", requester_id, amount, source_id)
        return WithdrawResult.OK
