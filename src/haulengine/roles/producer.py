# src/haulengine/roles/producer.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from haulengine.roles.common import EnergyLevel, Position, Timing, Urgency
from haulengine.typing import Category, EntityId, ZoneName


@dataclass(slots=True)
class Producer:
    """
    Producer role for logistics entities.

    Represents a source of energy a carrier can withdraw from, such as a
    harvester agent or a spawn with surplus.
    """

    category: ClassVar[Category] = "producer"

    name: EntityId
    kind: str
    energy: EnergyLevel
    pos: Position
    urgency: Urgency
    withdraw_timing: Timing
    production_per_tick: float

    @property
    def zone(self) -> ZoneName:
        return self.pos.zone

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Producer:
        return cls(
            name=data["name"],
            kind=data["kind"],
            energy=EnergyLevel(**data["energy"]),
            pos=Position.from_dict(data["pos"]),
            urgency=Urgency(**data["urgency"]),
            withdraw_timing=Timing(**data["withdraw_timing"]),
            production_per_tick=float(data["production_per_tick"]),
        )
