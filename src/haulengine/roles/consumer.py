# src/haulengine/roles/consumer.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from haulengine.roles.common import (
    DecayTiming,
    EnergyLevel,
    Position,
    Timing,
    Urgency,
    decay_from_dict,
)
from haulengine.typing import Category, EntityId, ZoneName


@dataclass(slots=True)
class Consumer:
    """
    Consumer role for logistics entities.

    Represents a sink a carrier can deposit into. ``deposit_timing`` holds the
    tick when at least ``haul_threshold`` free capacity is anticipated
    (earliest) and the tick when the store is anticipated to run dry (latest).
    """

    category: ClassVar[Category] = "consumer"

    name: EntityId
    kind: str
    energy: EnergyLevel
    pos: Position
    urgency: Urgency
    deposit_timing: Timing
    production_per_tick: float  # decay-inclusive
    decay_timing: Optional[DecayTiming] = None

    @property
    def zone(self) -> ZoneName:
        return self.pos.zone

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Consumer:
        return cls(
            name=data["name"],
            kind=data["kind"],
            energy=EnergyLevel(**data["energy"]),
            pos=Position.from_dict(data["pos"]),
            urgency=Urgency(**data["urgency"]),
            deposit_timing=Timing(**data["deposit_timing"]),
            production_per_tick=float(data["production_per_tick"]),
            decay_timing=decay_from_dict(data.get("decay_timing")),
        )
