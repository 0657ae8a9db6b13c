"""
Lease table linking direct-collection requesters to energy sources.

Leases are grouped per zone. A lease is *unbound* until a concrete source is
assigned, *bound* afterwards, and removed once consumed, cancelled or expired.
The book only stores and queries leases; the rules for creating, binding and
consuming them live in :mod:`haulengine.systems.reservations`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Optional

from haulengine.typing import Category, EntityId, LeaseId, ZoneName

LeaseStatus = Literal["unbound", "bound"]


@dataclass(slots=True)
class EnergyReservation:
    """A time-bounded, single-use claim on a source's energy."""

    id: LeaseId
    requester_id: EntityId
    zone: ZoneName
    amount: int
    created_tick: int
    expires_tick: int
    source_id: Optional[EntityId] = None
    source_kind: Optional[Category] = None

    @property
    def status(self) -> LeaseStatus:
        return "unbound" if self.source_id is None else "bound"

    def is_expired(self, current_tick: int) -> bool:
        return current_tick > self.expires_tick

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnergyReservation:
        return cls(**data)


@dataclass(slots=True)
class LeaseBook:
    """
    Per-zone collection of :class:`EnergyReservation` rows.

    Query and purge helpers mirror the edge-list API of the engine's other
    relationship containers: ``query_targets`` returns matching rows,
    ``aggregate_by_target`` sums bound amounts per source and ``purge_*``
    remove every row touching the given ids.
    """

    leases: dict[ZoneName, dict[LeaseId, EnergyReservation]] = field(
        default_factory=dict
    )
    next_seq: int = 0

    # ------------------------------------------------------------------ #
    #   mutation                                                         #
    # ------------------------------------------------------------------ #
    def new_id(self, requester_id: EntityId, tick: int) -> LeaseId:
        self.next_seq += 1
        return f"{requester_id}#{tick}.{self.next_seq}"

    def append(self, lease: EnergyReservation) -> None:
        zone_leases = self.leases.setdefault(lease.zone, {})
        if lease.id in zone_leases:
            raise ValueError(f"Lease '{lease.id}' already exists in {lease.zone}")
        zone_leases[lease.id] = lease

    def drop(self, zone: ZoneName, lease_id: LeaseId) -> EnergyReservation | None:
        zone_leases = self.leases.get(zone)
        if not zone_leases:
            return None
        lease = zone_leases.pop(lease_id, None)
        if not zone_leases:
            del self.leases[zone]
        return lease

    def drop_where(
        self,
        predicate: Callable[[EnergyReservation], bool],
        *,
        zone: ZoneName | None = None,
    ) -> list[EnergyReservation]:
        """Remove every lease matching *predicate*; return the removed rows."""
        zones = [zone] if zone is not None else list(self.leases)
        dropped: list[EnergyReservation] = []
        for z in zones:
            for lease in list(self.leases.get(z, {}).values()):
                if predicate(lease):
                    self.drop(z, lease.id)
                    dropped.append(lease)
        return dropped

    def purge_requesters(self, requester_ids: Iterable[EntityId]) -> list[EnergyReservation]:
        ids = set(requester_ids)
        if not ids:
            return []
        return self.drop_where(lambda lease: lease.requester_id in ids)

    def purge_targets(self, source_ids: Iterable[EntityId]) -> list[EnergyReservation]:
        ids = set(source_ids)
        if not ids:
            return []
        return self.drop_where(lambda lease: lease.source_id in ids)

    def purge_zones(self, keep: Iterable[ZoneName]) -> list[EnergyReservation]:
        """Drop every lease outside the zones in *keep*."""
        keep_set = set(keep)
        dropped: list[EnergyReservation] = []
        for zone in [z for z in self.leases if z not in keep_set]:
            dropped.extend(self.leases.pop(zone).values())
        return dropped

    # ------------------------------------------------------------------ #
    #   queries                                                          #
    # ------------------------------------------------------------------ #
    def get(self, zone: ZoneName, lease_id: LeaseId) -> EnergyReservation | None:
        return self.leases.get(zone, {}).get(lease_id)

    def find(self, lease_id: LeaseId) -> EnergyReservation | None:
        for zone_leases in self.leases.values():
            if lease_id in zone_leases:
                return zone_leases[lease_id]
        return None

    def in_zone(self, zone: ZoneName) -> list[EnergyReservation]:
        return list(self.leases.get(zone, {}).values())

    def query_targets(self, source_id: EntityId) -> list[EnergyReservation]:
        return [lease for lease in self if lease.source_id == source_id]

    def aggregate_by_target(self, source_id: EntityId) -> int:
        return sum(lease.amount for lease in self.query_targets(source_id))

    def __iter__(self) -> Iterator[EnergyReservation]:
        for zone_leases in self.leases.values():
            yield from zone_leases.values()

    def __len__(self) -> int:
        return sum(len(z) for z in self.leases.values())

    # ------------------------------------------------------------------ #
    #   persistence                                                      #
    # ------------------------------------------------------------------ #
    def to_dict(self) -> dict[str, Any]:
        return {
            "next_seq": self.next_seq,
            "leases": {
                zone: {lid: asdict(lease) for lid, lease in zone_leases.items()}
                for zone, zone_leases in self.leases.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LeaseBook:
        return cls(
            leases={
                zone: {
                    lid: EnergyReservation.from_dict(row)
                    for lid, row in zone_leases.items()
                }
                for zone, zone_leases in data.get("leases", {}).items()
            },
            next_seq=int(data.get("next_seq", 0)),
        )

    def __repr__(self) -> str:
        return f"LeaseBook(n_zones={len(self.leases)}, n_leases={len(self)})"
