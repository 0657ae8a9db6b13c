"""Value types shared by every logistics entity record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from haulengine.typing import EntityId, ReservationKind, ZoneName


@dataclass(slots=True, frozen=True)
class Position:
    """A tile inside a zone."""

    x: int
    y: int
    zone: ZoneName

    def range_to(self, other: Position) -> int:
        """Chebyshev (king-move) distance; unbounded across zones."""
        if self.zone != other.zone:
            return 1 << 30
        return max(abs(self.x - other.x), abs(self.y - other.y))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        return cls(x=int(data["x"]), y=int(data["y"]), zone=str(data["zone"]))


@dataclass(slots=True)
class EnergyLevel:
    """
    Current and maximum energy held by an entity.

    Mutators must keep ``0 <= current <= capacity``; use :meth:`set_current`
    rather than assigning ``current`` directly when the value comes from an
    untrusted source.
    """

    current: int
    capacity: int

    @property
    def free(self) -> int:
        """Room left before the entity is full."""
        return max(self.capacity - self.current, 0)

    @property
    def missing(self) -> int:
        """Signed shortfall (``capacity - current``) used by demand ranking."""
        return self.capacity - self.current

    def set_current(self, value: int) -> None:
        self.current = min(max(int(value), 0), self.capacity)


@dataclass(slots=True, frozen=True)
class Urgency:
    """Priority of an entity in peace and war time (higher is more urgent)."""

    peace: int
    war: int


@dataclass(slots=True, frozen=True)
class Timing:
    """A ``[earliest_tick, latest_tick]`` window."""

    earliest_tick: int
    latest_tick: int


@dataclass(slots=True, frozen=True)
class DecayTiming:
    """When an entity is expected to start decaying and when it is critical."""

    earliest_tick: int
    latest_tick: int
    interval: int = 1
    threshold: int = 0


@dataclass(slots=True, frozen=True)
class StoreActions:
    """World actions a carrier uses to collect from / deliver to a store."""

    collect: str | None = "withdraw"
    deliver: str | None = "transfer"


@dataclass(slots=True)
class CarrierReservation:
    """The single active task of a carrier produced by a match."""

    kind: ReservationKind
    target_id: EntityId
    amount: int
    path: list[Position]
    action: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CarrierReservation:
        return cls(
            kind=data["kind"],
            target_id=data["target_id"],
            amount=int(data["amount"]),
            path=[Position.from_dict(p) for p in data.get("path", [])],
            action=data.get("action"),
        )


def timing_from_dict(data: dict[str, Any] | None) -> Timing | None:
    if data is None:
        return None
    return Timing(int(data["earliest_tick"]), int(data["latest_tick"]))


def decay_from_dict(data: dict[str, Any] | None) -> DecayTiming | None:
    if data is None:
        return None
    return DecayTiming(**{k: int(v) for k, v in data.items()})
