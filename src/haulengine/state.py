# src/haulengine/state.py
"""
Scheduler state: the entity registry, lease book and hauling-deficit map.

Every system receives the :class:`SchedulerState` explicitly; there is no
module-level registry. The state is plain data plus the lifecycle helpers
that keep cross-references consistent (deregistration cascades, reserved
capacity bookkeeping) and a versioned JSON round-trip.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from haulengine import logging
from haulengine.relationships import LeaseBook
from haulengine.roles import (
    Carrier,
    Consumer,
    DecayTiming,
    EnergyLevel,
    Position,
    Producer,
    Store,
    StoreActions,
    Timing,
    Urgency,
)
from haulengine.typing import EntityId, ZoneName

log = logging.getLogger(__name__)

_SCHEMA_VERSION = 1

Entity = Union[Producer, Consumer, Store, Carrier]

_FALLBACK_URGENCY = Urgency(peace=0, war=0)


@dataclass(slots=True)
class HaulingDeficit:
    """Carrier shortfall of one zone, read by the spawn planner."""

    demand: float
    supply: float
    net: float


@dataclass(slots=True)
class SchedulerState:
    """
    Mutable state shared by every system of the scheduler.

    Attributes
    ----------
    producers, consumers, stores, carriers : dict
        Entity records keyed by name. Dict order is registration order and
        is relied upon by source selection.
    leases : LeaseBook
        Direct-collection leases grouped per zone.
    hauling_deficit : dict[str, HaulingDeficit]
        Zones currently short on carrier capacity.
    tick : int
        Current world tick.
    urgency_defaults : dict[str, Urgency]
        Default urgency per entity kind, used when registration omits one.
    carrier_lifetime, renew_threshold : int
        Used to derive a carrier's default decay timing.
    lease_ttl : int
        Lifetime in ticks of a direct-collection lease when the caller
        gives none.
    """

    producers: dict[EntityId, Producer] = field(default_factory=dict)
    consumers: dict[EntityId, Consumer] = field(default_factory=dict)
    stores: dict[EntityId, Store] = field(default_factory=dict)
    carriers: dict[EntityId, Carrier] = field(default_factory=dict)
    leases: LeaseBook = field(default_factory=LeaseBook)
    hauling_deficit: dict[ZoneName, HaulingDeficit] = field(default_factory=dict)
    tick: int = 0
    urgency_defaults: dict[str, Urgency] = field(default_factory=dict)
    carrier_lifetime: int = 1500
    renew_threshold: int = 200
    lease_ttl: int = 50

    # ------------------------------------------------------------------ #
    #   construction                                                     #
    # ------------------------------------------------------------------ #
    @classmethod
    def from_config(cls, cfg: Any) -> SchedulerState:
        """Build an empty state using the registration defaults of *cfg*."""
        return cls(
            urgency_defaults={
                kind: Urgency(int(u["peace"]), int(u["war"]))
                for kind, u in (cfg.urgency or {}).items()
            },
            carrier_lifetime=cfg.carrier_lifetime,
            renew_threshold=cfg.renew_threshold,
            lease_ttl=cfg.lease_ttl,
        )

    # ------------------------------------------------------------------ #
    #   registration                                                     #
    # ------------------------------------------------------------------ #
    def register_producer(
        self,
        name: EntityId,
        kind: str,
        pos: Position,
        *,
        current: int,
        capacity: int,
        production_per_tick: float = 0.0,
        urgency: Urgency | None = None,
        withdraw_timing: Timing | None = None,
    ) -> Producer:
        self._check_new(name)
        producer = Producer(
            name=name,
            kind=kind,
            energy=_energy(name, current, capacity),
            pos=pos,
            urgency=urgency or self._default_urgency(kind),
            withdraw_timing=withdraw_timing or Timing(self.tick, self.tick),
            production_per_tick=float(production_per_tick),
        )
        self.producers[name] = producer
        log.debug("Registered producer %s (%s) in %s", name, kind, pos.zone)
        return producer

    def register_consumer(
        self,
        name: EntityId,
        kind: str,
        pos: Position,
        *,
        current: int,
        capacity: int,
        production_per_tick: float = 0.0,
        urgency: Urgency | None = None,
        deposit_timing: Timing | None = None,
        decay_timing: DecayTiming | None = None,
    ) -> Consumer:
        self._check_new(name)
        consumer = Consumer(
            name=name,
            kind=kind,
            energy=_energy(name, current, capacity),
            pos=pos,
            urgency=urgency or self._default_urgency(kind),
            deposit_timing=deposit_timing or Timing(self.tick, self.tick),
            production_per_tick=float(production_per_tick),
            decay_timing=decay_timing,
        )
        self.consumers[name] = consumer
        log.debug("Registered consumer %s (%s) in %s", name, kind, pos.zone)
        return consumer

    def register_store(
        self,
        name: EntityId,
        kind: str,
        pos: Position,
        *,
        current: int,
        capacity: int,
        actions: StoreActions | None = None,
        urgency: Urgency | None = None,
    ) -> Store:
        self._check_new(name)
        store = Store(
            name=name,
            kind=kind,
            actions=actions or StoreActions(),
            energy=_energy(name, current, capacity),
            pos=pos,
            urgency=urgency or self._default_urgency(kind),
        )
        self.stores[name] = store
        log.debug("Registered store %s (%s) in %s", name, kind, pos.zone)
        return store

    def register_carrier(
        self,
        name: EntityId,
        kind: str,
        pos: Position,
        *,
        current: int,
        capacity: int,
        urgency: Urgency | None = None,
        decay_timing: DecayTiming | None = None,
    ) -> Carrier:
        self._check_new(name)
        if decay_timing is None:
            decay_timing = DecayTiming(
                earliest_tick=self.tick + self.renew_threshold,
                latest_tick=self.tick + self.carrier_lifetime,
                interval=1,
                threshold=self.renew_threshold,
            )
        carrier = Carrier(
            name=name,
            kind=kind,
            energy=_energy(name, current, capacity),
            pos=pos,
            urgency=urgency or self._default_urgency(kind),
            decay_timing=decay_timing,
        )
        self.carriers[name] = carrier
        log.debug("Registered carrier %s (%s) in %s", name, kind, pos.zone)
        return carrier

    def deregister(self, name: EntityId) -> Entity | None:
        """
        Remove an entity and every reference to it.

        Cascades to leases requested by or bound to the entity, to
        ``Store.reservations`` entries keyed by the entity or one of its
        leases, and to carrier reservations targeting it.

        Returns
        -------
        Entity or None
            The removed record, or ``None`` if *name* was not registered.
        """
        entity: Entity | None = None
        for collection in (self.producers, self.consumers, self.stores, self.carriers):
            if name in collection:
                entity = collection.pop(name)  # type: ignore[attr-defined]
                break
        if entity is None:
            return None

        dropped = self.leases.purge_requesters([name])
        dropped += self.leases.purge_targets([name])
        stale_keys = {name} | {lease.id for lease in dropped}
        for store in self.stores.values():
            for key in stale_keys & store.reservations.keys():
                del store.reservations[key]

        for carrier in self.carriers.values():
            res = carrier.reservation
            if res is not None and res.target_id == name:
                carrier.reservation = None

        log.debug(
            "Deregistered %s %s (%d lease(s) dropped)",
            entity.category,
            name,
            len(dropped),
        )
        return entity

    def prune_deficits(self, observed_zones: Iterable[ZoneName]) -> int:
        """Delete deficit rows of zones that are no longer observed."""
        keep = set(observed_zones)
        stale = [zone for zone in self.hauling_deficit if zone not in keep]
        for zone in stale:
            del self.hauling_deficit[zone]
        return len(stale)

    # ------------------------------------------------------------------ #
    #   lookup                                                           #
    # ------------------------------------------------------------------ #
    def find_entity(self, name: EntityId) -> Entity | None:
        for collection in (self.producers, self.consumers, self.stores, self.carriers):
            if name in collection:
                return collection[name]  # type: ignore[return-value]
        return None

    def find_source(self, name: EntityId) -> Optional[Union[Store, Producer]]:
        return self.stores.get(name) or self.producers.get(name)

    def zones(self) -> list[ZoneName]:
        """Every zone that holds at least one registered entity."""
        seen: dict[ZoneName, None] = {}
        for collection in (self.producers, self.consumers, self.stores, self.carriers):
            for entity in collection.values():
                seen.setdefault(entity.zone, None)
        return list(seen)

    # ------------------------------------------------------------------ #
    #   reserved capacity                                                #
    # ------------------------------------------------------------------ #
    def reserved_amount(self, source_id: EntityId) -> int:
        """Energy already claimed on *source_id* by leases and carriers."""
        total = self.leases.aggregate_by_target(source_id)
        for carrier in self.carriers.values():
            res = carrier.reservation
            if res is not None and res.kind == "collect" and res.target_id == source_id:
                total += res.amount
        return total

    def unreserved(self, source_id: EntityId) -> int:
        source = self.find_source(source_id)
        if source is None:
            return 0
        return max(source.energy.current - self.reserved_amount(source_id), 0)

    # ------------------------------------------------------------------ #
    #   persistence                                                      #
    # ------------------------------------------------------------------ #
    def to_dict(self) -> dict[str, Any]:
        return {
            "_schema_version": _SCHEMA_VERSION,
            "tick": self.tick,
            "producers": {k: asdict(v) for k, v in self.producers.items()},
            "consumers": {k: asdict(v) for k, v in self.consumers.items()},
            "stores": {k: asdict(v) for k, v in self.stores.items()},
            "carriers": {k: asdict(v) for k, v in self.carriers.items()},
            "leases": self.leases.to_dict(),
            "hauling_deficit": {
                zone: asdict(d) for zone, d in self.hauling_deficit.items()
            },
            "urgency_defaults": {
                kind: asdict(u) for kind, u in self.urgency_defaults.items()
            },
            "carrier_lifetime": self.carrier_lifetime,
            "renew_threshold": self.renew_threshold,
            "lease_ttl": self.lease_ttl,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SchedulerState:
        version = data.get("_schema_version")
        if version != _SCHEMA_VERSION:
            raise ValueError(
                f"Unsupported state schema version {version!r} "
                f"(expected {_SCHEMA_VERSION})"
            )
        return cls(
            producers={
                k: Producer.from_dict(v) for k, v in data.get("producers", {}).items()
            },
            consumers={
                k: Consumer.from_dict(v) for k, v in data.get("consumers", {}).items()
            },
            stores={k: Store.from_dict(v) for k, v in data.get("stores", {}).items()},
            carriers={
                k: Carrier.from_dict(v) for k, v in data.get("carriers", {}).items()
            },
            leases=LeaseBook.from_dict(data.get("leases", {})),
            hauling_deficit={
                zone: HaulingDeficit(**d)
                for zone, d in data.get("hauling_deficit", {}).items()
            },
            tick=int(data.get("tick", 0)),
            urgency_defaults={
                kind: Urgency(**u)
                for kind, u in data.get("urgency_defaults", {}).items()
            },
            carrier_lifetime=int(data.get("carrier_lifetime", 1500)),
            renew_threshold=int(data.get("renew_threshold", 200)),
            lease_ttl=int(data.get("lease_ttl", 50)),
        )

    def save(self, path: str | Path) -> None:
        """Write the state to *path* as versioned JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str | Path) -> SchedulerState:
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data)

    # ------------------------------------------------------------------ #
    #   internals                                                        #
    # ------------------------------------------------------------------ #
    def _check_new(self, name: EntityId) -> None:
        if self.find_entity(name) is not None:
            raise ValueError(f"Entity '{name}' is already registered")

    def _default_urgency(self, kind: str) -> Urgency:
        return self.urgency_defaults.get(
            kind, self.urgency_defaults.get("default", _FALLBACK_URGENCY)
        )

    def __repr__(self) -> str:
        return (
            f"SchedulerState(tick={self.tick}, producers={len(self.producers)}, "
            f"consumers={len(self.consumers)}, stores={len(self.stores)}, "
            f"carriers={len(self.carriers)}, leases={len(self.leases)})"
        )


def _energy(name: EntityId, current: int, capacity: int) -> EnergyLevel:
    if current < 0 or capacity < 0:
        raise ValueError(f"Energy of '{name}' must be non-negative")
    if current > capacity:
        raise ValueError(
            f"Energy of '{name}' exceeds capacity ({current} > {capacity})"
        )
    return EnergyLevel(int(current), int(capacity))


__all__ = ["HaulingDeficit", "SchedulerState", "Entity"]
