# src/haulengine/systems/discovery.py
"""
Demand / supply discovery.

Reads the registry and builds, per zone, the ranked work lists the matcher
consumes plus the demand and supply figures behind the hauling-deficit
signal. Each step is a separate function so it can be tested (and replaced)
on its own; :func:`discover_logistic_tasks` chains them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from haulengine.logging import getLogger
from haulengine.roles import Carrier, Consumer, Store
from haulengine.state import HaulingDeficit, SchedulerState
from haulengine.typing import ZoneName
from haulengine.world import WorldSensor

if TYPE_CHECKING:
    from haulengine.config import Config

log = getLogger(__name__)


@dataclass(slots=True)
class CarrierBuckets:
    """Carriers of one zone split by activity and load."""

    active_full: list[Carrier] = field(default_factory=list)
    active_empty: list[Carrier] = field(default_factory=list)
    idle_full: list[Carrier] = field(default_factory=list)
    idle_empty: list[Carrier] = field(default_factory=list)
    total_capacity: int = 0


@dataclass(slots=True)
class ConsumerDemand:
    """Unfiltered due / overdue split of one zone's consumers."""

    due: list[Consumer] = field(default_factory=list)
    overdue: list[Consumer] = field(default_factory=list)
    total_demand: float = 0.0


@dataclass(slots=True)
class RankedConsumers:
    """Filtered, urgency-ranked consumers of one zone."""

    due: list[Consumer] = field(default_factory=list)
    overdue: list[Consumer] = field(default_factory=list)
    total_energy_demand: int = 0


@dataclass(slots=True)
class LogisticsTasks:
    """Everything one discovery pass produces."""

    consumers_by_zone: dict[ZoneName, RankedConsumers] = field(default_factory=dict)
    stores_by_zone: dict[ZoneName, list[Store]] = field(default_factory=dict)
    carriers_by_zone: dict[ZoneName, CarrierBuckets] = field(default_factory=dict)
    avg_haul_distance_by_zone: dict[ZoneName, float] = field(default_factory=dict)
    demand_by_zone: dict[ZoneName, float] = field(default_factory=dict)
    supply_by_zone: dict[ZoneName, float] = field(default_factory=dict)


# ───────────────────────── carriers ─────────────────────────
def partition_carriers(carriers: Iterable[Carrier]) -> dict[ZoneName, CarrierBuckets]:
    """
    Split carriers per zone into ``{active, idle} x {full, empty}``.

    A carrier is *full* when it holds any energy. It is *active* when its
    reservation matches its load (deliver while full, collect while empty)
    and *idle* when it has none. A carrier holding the mismatching kind lands
    in no bucket but still adds to ``total_capacity``.
    """
    by_zone: dict[ZoneName, CarrierBuckets] = {}
    for carrier in carriers:
        buckets = by_zone.setdefault(carrier.zone, CarrierBuckets())
        kind = carrier.reservation.kind if carrier.reservation else None
        if carrier.is_full:
            if kind == "deliver":
                buckets.active_full.append(carrier)
            elif kind is None:
                buckets.idle_full.append(carrier)
        else:
            if kind == "collect":
                buckets.active_empty.append(carrier)
            elif kind is None:
                buckets.idle_empty.append(carrier)
        buckets.total_capacity += carrier.energy.capacity
    return by_zone


# ───────────────────────── consumers ────────────────────────
def classify_consumers(
    consumers: Iterable[Consumer], *, current_tick: int
) -> dict[ZoneName, ConsumerDemand]:
    """
    Bucket consumers per zone into overdue and due.

    A consumer is *overdue* once ``current_tick`` passes the earliest deposit
    tick and otherwise *due* once it passes the latest one; the comparison
    order is kept as the live system has always run it. ``total_demand`` is
    the zone's summed ``production_per_tick``.
    """
    by_zone: dict[ZoneName, ConsumerDemand] = {}
    for consumer in consumers:
        demand = by_zone.setdefault(consumer.zone, ConsumerDemand())
        timing = consumer.deposit_timing
        if current_tick > timing.earliest_tick:
            demand.overdue.append(consumer)
        elif current_tick > timing.latest_tick:
            demand.due.append(consumer)
        demand.total_demand += consumer.production_per_tick
    return by_zone


def rank_consumers(
    demand_by_zone: dict[ZoneName, ConsumerDemand], *, haul_threshold: int
) -> dict[ZoneName, RankedConsumers]:
    """
    Filter and rank consumers by peace-time urgency (descending, stable).

    Overdue consumers are kept when missing more than ``haul_threshold``;
    due consumers when missing less. ``total_energy_demand`` sums the missing
    energy of the kept due consumers.
    """
    ranked: dict[ZoneName, RankedConsumers] = {}
    for zone, demand in demand_by_zone.items():
        due = sorted(
            (c for c in demand.due if c.energy.missing < haul_threshold),
            key=lambda c: -c.urgency.peace,
        )
        overdue = sorted(
            (c for c in demand.overdue if c.energy.missing > haul_threshold),
            key=lambda c: -c.urgency.peace,
        )
        ranked[zone] = RankedConsumers(
            due=due,
            overdue=overdue,
            total_energy_demand=sum(c.energy.missing for c in due),
        )
    return ranked


# ───────────────────────── stores ───────────────────────────
def rank_stores(stores: Iterable[Store]) -> dict[ZoneName, list[Store]]:
    """Group stores per zone, fullest first (stable)."""
    by_zone: dict[ZoneName, list[Store]] = {}
    for store in stores:
        by_zone.setdefault(store.zone, []).append(store)
    return {
        zone: sorted(zone_stores, key=lambda s: -s.energy.current)
        for zone, zone_stores in by_zone.items()
    }


# ───────────────────────── distances ────────────────────────
def calc_avg_haul_distance(
    zones: Iterable[ZoneName],
    ranked_consumers: dict[ZoneName, RankedConsumers],
    ranked_stores: dict[ZoneName, list[Store]],
    *,
    default_haul_distance: float,
) -> dict[ZoneName, float]:
    """
    Flow-weighted mean straight-line distance from stores to consumers.

    Every (store, consumer) pair with a positive consumer shortfall is
    weighted by ``min(store.current, consumer missing)``. Zones with no
    such flow, or a degenerate zero distance, get ``default_haul_distance``.
    """
    result: dict[ZoneName, float] = {}
    for zone in zones:
        stores = ranked_stores.get(zone, [])
        ranked = ranked_consumers.get(zone)
        consumers = [*ranked.overdue, *ranked.due] if ranked else []
        consumers = [c for c in consumers if c.energy.missing > 0]
        if not stores or not consumers:
            result[zone] = default_haul_distance
            continue

        store_xy = np.array([(s.pos.x, s.pos.y) for s in stores], dtype=np.float64)
        store_supply = np.array([s.energy.current for s in stores], dtype=np.float64)
        cons_xy = np.array([(c.pos.x, c.pos.y) for c in consumers], dtype=np.float64)
        cons_missing = np.array([c.energy.missing for c in consumers], dtype=np.float64)

        diff = store_xy[:, None, :] - cons_xy[None, :, :]
        dist = np.hypot(diff[..., 0], diff[..., 1])
        flow = np.minimum(store_supply[:, None], cons_missing[None, :])

        total_flow = float(flow.sum())
        avg = float((dist * flow).sum()) / total_flow if total_flow > 0 else 0.0
        result[zone] = avg if avg > 0 else default_haul_distance

    if log.isEnabledFor(logging.DEBUG):
        log.debug(
            "  Avg haul distance: "
            + ", ".join(f"{z}={d:.2f}" for z, d in result.items())
        )
    return result


# ───────────────────────── demand / supply ──────────────────
def calc_dynamic_demand(
    consumer_demand: dict[ZoneName, ConsumerDemand],
    ranked_consumers: dict[ZoneName, RankedConsumers],
    sensor: WorldSensor,
    *,
    demand_basis: str = "due_deficit",
) -> dict[ZoneName, float]:
    """
    Energy hauling demand per zone with consumers.

    ``due_deficit`` uses the filtered due-consumer shortfall;
    ``production_rate`` uses the zone's summed ``production_per_tick``.
    Both add the zone's source output per tick.
    """
    demand: dict[ZoneName, float] = {}
    for zone, raw in consumer_demand.items():
        if demand_basis == "production_rate":
            base = raw.total_demand
        else:
            ranked = ranked_consumers.get(zone)
            base = float(ranked.total_energy_demand) if ranked else 0.0
        demand[zone] = base + float(sensor.source_energy_per_tick(zone))
    return demand


def calc_dynamic_supply(
    carriers_by_zone: dict[ZoneName, CarrierBuckets],
    avg_haul_distance: dict[ZoneName, float],
    *,
    default_haul_distance: float,
) -> dict[ZoneName, float]:
    """Effective hauling throughput: ``total_capacity / avg_haul_distance``."""
    supply: dict[ZoneName, float] = {}
    for zone, buckets in carriers_by_zone.items():
        distance = avg_haul_distance.get(zone) or default_haul_distance
        supply[zone] = buckets.total_capacity / distance
    return supply


def record_hauling_deficit(
    state: SchedulerState,
    demand_by_zone: dict[ZoneName, float],
    supply_by_zone: dict[ZoneName, float],
    *,
    deficit_margin: float,
) -> list[ZoneName]:
    """
    Write ``state.hauling_deficit`` for zones short on carriers.

    A zone qualifies when it has a supply figure and demand exceeds it by
    more than ``deficit_margin``. Evaluated zones that do not qualify lose
    any previous row.

    Returns
    -------
    list[str]
        Zones with a deficit after this pass.
    """
    short: list[ZoneName] = []
    for zone, demand in demand_by_zone.items():
        supply = supply_by_zone.get(zone)
        if not supply:
            continue
        net = demand - supply
        if net > deficit_margin:
            state.hauling_deficit[zone] = HaulingDeficit(demand, supply, net)
            short.append(zone)
        else:
            state.hauling_deficit.pop(zone, None)

    if short:
        log.info(f"Hauling deficit in {len(short)} zone(s): {short}")
    return short


# ───────────────────────── pass ─────────────────────────────
def discover_logistic_tasks(
    state: SchedulerState,
    sensor: WorldSensor,
    *,
    current_tick: int,
    config: Config,
) -> LogisticsTasks:
    """
    Run the full discovery pass over the registry.

    Parameters
    ----------
    state : SchedulerState
        Registry to read; ``hauling_deficit`` is updated in place.
    sensor : WorldSensor
        Supplies per-zone source output.
    current_tick : int
        Tick used to classify consumers.
    config : Config
        Supplies ``haul_threshold``, ``default_haul_distance``,
        ``demand_basis`` and ``deficit_margin``.

    Returns
    -------
    LogisticsTasks
        Ranked work lists and the demand / supply figures per zone.
    """
    log.debug(f"--- Discovering logistic tasks (tick {current_tick}) ---")

    carriers_by_zone = partition_carriers(state.carriers.values())
    consumer_demand = classify_consumers(
        state.consumers.values(), current_tick=current_tick
    )
    ranked_consumers = rank_consumers(
        consumer_demand, haul_threshold=config.haul_threshold
    )
    ranked_stores = rank_stores(state.stores.values())

    zones = dict.fromkeys([*carriers_by_zone, *ranked_consumers, *ranked_stores])
    avg_distance = calc_avg_haul_distance(
        zones,
        ranked_consumers,
        ranked_stores,
        default_haul_distance=config.default_haul_distance,
    )
    demand = calc_dynamic_demand(
        consumer_demand, ranked_consumers, sensor, demand_basis=config.demand_basis
    )
    supply = calc_dynamic_supply(
        carriers_by_zone,
        avg_distance,
        default_haul_distance=config.default_haul_distance,
    )
    record_hauling_deficit(state, demand, supply, deficit_margin=config.deficit_margin)

    return LogisticsTasks(
        consumers_by_zone=ranked_consumers,
        stores_by_zone=ranked_stores,
        carriers_by_zone=carriers_by_zone,
        avg_haul_distance_by_zone=avg_distance,
        demand_by_zone=demand,
        supply_by_zone=supply,
    )
