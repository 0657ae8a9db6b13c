# src/haulengine/roles/carrier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from haulengine.roles.common import (
    CarrierReservation,
    DecayTiming,
    EnergyLevel,
    Position,
    Urgency,
    decay_from_dict,
)
from haulengine.typing import Category, EntityId, ZoneName


@dataclass(slots=True)
class Carrier:
    """
    Carrier role for logistics entities.

    A mobile hauler agent. Holds at most one active reservation at a time.
    """

    category: ClassVar[Category] = "carrier"

    name: EntityId
    kind: str
    energy: EnergyLevel
    pos: Position
    urgency: Urgency
    decay_timing: Optional[DecayTiming] = None
    reservation: Optional[CarrierReservation] = None

    @property
    def zone(self) -> ZoneName:
        return self.pos.zone

    @property
    def is_full(self) -> bool:
        # "full" in the logistics sense: carrying anything at all
        return self.energy.current > 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Carrier:
        reservation = data.get("reservation")
        return cls(
            name=data["name"],
            kind=data["kind"],
            energy=EnergyLevel(**data["energy"]),
            pos=Position.from_dict(data["pos"]),
            urgency=Urgency(**data["urgency"]),
            decay_timing=decay_from_dict(data.get("decay_timing")),
            reservation=(
                CarrierReservation.from_dict(reservation) if reservation else None
            ),
        )
