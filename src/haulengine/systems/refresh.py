# src/haulengine/systems/refresh.py
"""
Incremental refresher.

Keeps registry energy levels current without re-scanning the world: every
turn exactly one observed zone is re-read (round-robin by ``turn mod N``), so
the per-turn cost is bounded by the size of a single zone. Between visits a
zone's readings are allowed to be stale.
"""

from __future__ import annotations

import logging

from haulengine.logging import getLogger
from haulengine.state import SchedulerState
from haulengine.typing import ZoneName
from haulengine.world import WorldSensor

log = getLogger(__name__)


def cleanup_unobserved(state: SchedulerState, observed_zones: list[ZoneName]) -> int:
    """
    Drop consumers and producers whose zone is no longer observable.

    Stores are kept: they are not owned by anyone and remain valid sources
    while out of sight. Deficit rows and leases of unobserved zones are
    pruned too.

    Returns
    -------
    int
        Number of entity, deficit and lease rows removed.
    """
    observed = set(observed_zones)
    stale = [
        name
        for collection in (state.consumers, state.producers)
        for name, entity in collection.items()
        if entity.zone not in observed
    ]
    for name in stale:
        state.deregister(name)

    pruned = state.prune_deficits(observed)
    leases = state.leases.purge_zones(observed)
    for lease in leases:
        if lease.source_id in state.stores:
            state.stores[lease.source_id].reservations.pop(lease.id, None)

    if stale or pruned or leases:
        log.info(
            f"Cleanup: removed {len(stale)} entit(y/ies), {pruned} deficit "
            f"row(s) and {len(leases)} lease(s) outside {len(observed)} "
            f"observed zone(s)"
        )
    if stale and log.isEnabledFor(logging.DEBUG):
        log.debug(f"  Removed: {stale}")
    return len(stale) + pruned + len(leases)


def refresh_zone(state: SchedulerState, sensor: WorldSensor, turn: int) -> ZoneName | None:
    """
    Re-read live energy for the single zone selected by ``turn``.

    Producers and consumers whose backing object cannot be found fall back
    to ``current = 0``; stores that disappeared are deregistered. Readings
    are clamped into ``[0, capacity]``. Carriers and leases are untouched.

    Returns
    -------
    str or None
        The refreshed zone, or ``None`` if no zone is observed.
    """
    zones = sensor.observed_zones()
    if not zones:
        log.debug("Refresh skipped: no observed zones")
        return None

    zone = zones[turn % len(zones)]
    n_updated = 0

    for collection in (state.producers, state.consumers):
        for entity in collection.values():
            if entity.zone != zone:
                continue
            live = sensor.live_energy(entity.name)
            entity.energy.set_current(0 if live is None else live)
            n_updated += 1

    gone = []
    for store in state.stores.values():
        if store.zone != zone:
            continue
        live = sensor.live_energy(store.name)
        if live is None:
            gone.append(store.name)
            continue
        store.energy.set_current(live)
        n_updated += 1
    for name in gone:
        state.deregister(name)

    log.debug(
        f"Refreshed zone {zone} (turn {turn}): {n_updated} reading(s), "
        f"{len(gone)} vanished store(s)"
    )
    return zone


def refresh(state: SchedulerState, sensor: WorldSensor, turn: int) -> ZoneName | None:
    """Cleanup unobserved zones, then refresh the zone due this turn."""
    cleanup_unobserved(state, sensor.observed_zones())
    return refresh_zone(state, sensor, turn)
