# src/haulengine/roles/store.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from haulengine.roles.common import EnergyLevel, Position, StoreActions, Urgency
from haulengine.typing import Category, EntityId, LeaseId, ZoneName


@dataclass(slots=True)
class Store:
    """
    Store role for logistics entities.

    A passive buffer (container, storage, terminal) that can act as either
    side of a match. ``reservations`` mirrors every outstanding claim on the
    store's energy, keyed by lease id (a carrier's lease id is its name).
    """

    category: ClassVar[Category] = "store"

    name: EntityId
    kind: str
    actions: StoreActions
    energy: EnergyLevel
    pos: Position
    urgency: Urgency
    reservations: dict[LeaseId, int] = field(default_factory=dict)

    @property
    def zone(self) -> ZoneName:
        return self.pos.zone

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Store:
        return cls(
            name=data["name"],
            kind=data["kind"],
            actions=StoreActions(**data["actions"]),
            energy=EnergyLevel(**data["energy"]),
            pos=Position.from_dict(data["pos"]),
            urgency=Urgency(**data["urgency"]),
            reservations={k: int(v) for k, v in data.get("reservations", {}).items()},
        )
