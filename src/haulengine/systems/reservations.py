# src/haulengine/systems/reservations.py
"""
Energy leases for direct-collection agents.

Agents that fetch their own energy (builders, upgraders) claim it through a
lease instead of a carrier match::

    unbound --bind--> bound --consume | expire | cancel--> (deleted)

Binding is the only place capacity is checked, so concurrent requesters are
serialised there: a source's bound lease amounts plus carrier collect
reservations never exceed its energy at bind time. Consumption is
single-shot; the lease is deleted after one withdrawal attempt whatever the
outcome, and the requester simply asks again next turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from haulengine.logging import getLogger
from haulengine.relationships import EnergyReservation
from haulengine.state import SchedulerState
from haulengine.typing import Category, EntityId, LeaseId, ZoneName
from haulengine.world import WithdrawResult, WorldSensor

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SourceOffer:
    """A source that can currently satisfy (part of) a request."""

    source_id: EntityId
    source_kind: Category
    amount: int
    unreserved: int


@dataclass(slots=True, frozen=True)
class WithdrawOutcome:
    """Result of consuming a lease."""

    lease_id: LeaseId
    result: WithdrawResult
    amount: int = 0
    source_id: Optional[EntityId] = None

    @property
    def ok(self) -> bool:
        return self.result is WithdrawResult.OK


def create_demand_lease(
    state: SchedulerState,
    requester: EntityId,
    amount: int,
    *,
    current_tick: int,
    ttl: int | None = None,
) -> LeaseId:
    """
    Open an unbound lease for *requester* in its zone.

    The lease expires *ttl* ticks after *current_tick*; ``state.lease_ttl``
    (the ``lease_ttl`` config key) is used when *ttl* is None.

    Raises
    ------
    ValueError
        If *amount* is negative or *ttl* is not positive.
    KeyError
        If *requester* is not registered.
    """
    if ttl is None:
        ttl = state.lease_ttl
    if amount < 0:
        raise ValueError(f"Lease amount must be non-negative, got {amount}")
    if ttl <= 0:
        raise ValueError(f"Lease ttl must be positive, got {ttl}")
    entity = state.find_entity(requester)
    if entity is None:
        raise KeyError(f"Requester '{requester}' is not registered")

    lease = EnergyReservation(
        id=state.leases.new_id(requester, current_tick),
        requester_id=requester,
        zone=entity.zone,
        amount=int(amount),
        created_tick=current_tick,
        expires_tick=current_tick + ttl,
    )
    state.leases.append(lease)
    log.debug(
        f"Lease {lease.id} opened for {requester}: {amount} energy "
        f"until tick {lease.expires_tick}"
    )
    return lease.id


def find_source_respecting_leases(
    state: SchedulerState, requester: EntityId, amount: int
) -> SourceOffer | None:
    """
    First source in the requester's zone with unreserved energy.

    Stores with a collect action are tried before producers, each in
    registration order. The offer is ``min(amount, unreserved)``.
    """
    entity = state.find_entity(requester)
    if entity is None:
        log.warning(f"No source lookup for unknown requester {requester}")
        return None
    zone = entity.zone

    for store in state.stores.values():
        if store.zone != zone or not store.actions.collect:
            continue
        free = state.unreserved(store.name)
        if free > 0:
            return SourceOffer(store.name, "store", min(amount, free), free)

    for producer in state.producers.values():
        if producer.zone != zone:
            continue
        free = state.unreserved(producer.name)
        if free > 0:
            return SourceOffer(producer.name, "producer", min(amount, free), free)

    log.debug(f"No energy source found for {requester} in {zone}")
    return None


def bind_lease_to_source(
    state: SchedulerState,
    zone: ZoneName,
    lease_id: LeaseId,
    source_id: EntityId,
) -> bool:
    """
    Bind an unbound lease to *source_id*.

    The lease amount is clamped to the source's unreserved energy. The bind
    is rejected (``False``) when the lease is unknown or already bound, the
    source is unknown or lies in another zone, or nothing is left unreserved
    on it.
    """
    lease = state.leases.get(zone, lease_id)
    if lease is None or lease.status == "bound":
        log.debug(f"Bind rejected: lease {lease_id} unknown or already bound")
        return False
    source = state.find_source(source_id)
    if source is None:
        log.debug(f"Bind rejected: source {source_id} unknown")
        return False
    if source.zone != lease.zone:
        log.debug(f"Bind rejected: {source_id} is outside lease zone {lease.zone}")
        return False
    free = state.unreserved(source_id)
    if free <= 0:
        log.debug(f"Bind rejected: {source_id} fully reserved")
        return False

    if lease.amount > free:
        log.debug(f"Lease {lease_id} clamped {lease.amount} -> {free}")
    lease.amount = min(lease.amount, free)
    lease.source_id = source_id
    lease.source_kind = source.category
    if source.category == "store":
        state.stores[source_id].reservations[lease_id] = lease.amount
    return True


def consume_lease(
    state: SchedulerState,
    world: WorldSensor,
    zone: ZoneName,
    lease_id: LeaseId,
) -> WithdrawOutcome:
    """
    Attempt the withdrawal a bound lease grants, then delete the lease.

    Withdraws ``min(lease.amount, source energy, requester free capacity)``
    through ``world.withdraw`` and mirrors a successful transfer in the
    registry. The world moves all of it or nothing, so a stale registry
    reading ends in a failed result rather than a partial transfer.
    Vanished sources, empty sources and full requesters end the lease
    without a retry.
    """
    lease = state.leases.get(zone, lease_id)
    if lease is None:
        return WithdrawOutcome(lease_id, WithdrawResult.NOT_FOUND)

    try:
        if lease.source_id is None:
            log.warning(f"Lease {lease_id} consumed before being bound")
            return WithdrawOutcome(lease_id, WithdrawResult.INVALID_TARGET)

        source = state.find_source(lease.source_id)
        if source is None:
            log.warning(f"Energy source {lease.source_id} not found for lease {lease_id}")
            return WithdrawOutcome(
                lease_id, WithdrawResult.NOT_FOUND, source_id=lease.source_id
            )

        requester = state.find_entity(lease.requester_id)
        requester_free = requester.energy.free if requester is not None else lease.amount
        amount = min(lease.amount, source.energy.current, requester_free)

        if amount <= 0:
            result = (
                WithdrawResult.FULL
                if requester_free <= 0
                else WithdrawResult.NOT_ENOUGH_RESOURCES
            )
        else:
            result = world.withdraw(lease.requester_id, source.name, amount)

        if result is not WithdrawResult.OK:
            log.info(
                f"Lease {lease_id} on {source.name} ended without transfer: "
                f"{result.value}"
            )
            return WithdrawOutcome(lease_id, result, source_id=source.name)

        source.energy.set_current(source.energy.current - amount)
        if requester is not None:
            requester.energy.set_current(requester.energy.current + amount)
        log.debug(f"Lease {lease_id}: {lease.requester_id} took {amount} from {source.name}")
        return WithdrawOutcome(lease_id, result, amount=amount, source_id=source.name)
    finally:
        _drop_lease(state, lease)


def expire_leases(
    state: SchedulerState,
    zone: ZoneName | None,
    *,
    current_tick: int,
) -> int:
    """Delete leases past their expiry tick (all zones when *zone* is None)."""
    expired = state.leases.drop_where(
        lambda lease: lease.is_expired(current_tick), zone=zone
    )
    for lease in expired:
        _unmirror(state, lease)
    if expired:
        log.debug(f"Expired {len(expired)} lease(s) at tick {current_tick}")
    return len(expired)


def cancel_lease(state: SchedulerState, zone: ZoneName, lease_id: LeaseId) -> bool:
    lease = state.leases.get(zone, lease_id)
    if lease is None:
        return False
    _drop_lease(state, lease)
    return True


def list_leases(state: SchedulerState, zone: ZoneName) -> list[EnergyReservation]:
    return state.leases.in_zone(zone)


def _drop_lease(state: SchedulerState, lease: EnergyReservation) -> None:
    state.leases.drop(lease.zone, lease.id)
    _unmirror(state, lease)


def _unmirror(state: SchedulerState, lease: EnergyReservation) -> None:
    if lease.source_id is not None and lease.source_id in state.stores:
        state.stores[lease.source_id].reservations.pop(lease.id, None)
