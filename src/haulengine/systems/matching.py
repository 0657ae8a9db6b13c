# src/haulengine/systems/matching.py
"""
Path-distance auction between carriers and destinations.

Each round every unmatched carrier issues one multi-goal path query against
all still-available destinations and proposes to the destination its path
reaches. A destination keeps only its strictly-shortest proposal; winners
are paired and leave both pools, and the next round starts with what is
left. The auction stops when destinations run out, carriers run out, or a
round yields no proposal at all, so it finishes in at most
``min(len(carriers), len(destinations)) + 1`` rounds.

The result is locally (not globally) optimal. Ties at equal distance go to
the carrier that proposed first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

from haulengine.logging import DEEP_DEBUG, getLogger
from haulengine.roles import Carrier, CarrierReservation, Destination, Position, Store
from haulengine.state import SchedulerState
from haulengine.typing import EntityId, ReservationKind
from haulengine.world import CostModel, Goal, PathFinder

if TYPE_CHECKING:
    from haulengine.config import Config
    from haulengine.systems.discovery import LogisticsTasks

log = getLogger(__name__)


class Stage(Enum):
    PROPOSING = "proposing"
    ACCEPTING = "accepting"
    DRAINING = "draining"
    DONE = "done"


class StopReason(Enum):
    NO_DESTINATIONS = "no_destinations"
    NO_PROPOSALS = "no_proposals"
    NO_CARRIERS = "no_carriers"


@dataclass(slots=True)
class Match:
    carrier: Carrier
    destination: Destination
    distance: int
    path: list[Position]


@dataclass(slots=True)
class MatchResult:
    """Outcome of one auction; remainders keep their input order."""

    remaining_carriers: list[Carrier] = field(default_factory=list)
    remaining_destinations: list[Destination] = field(default_factory=list)
    pairs: list[Match] = field(default_factory=list)
    rounds: int = 0
    stop_reason: Optional[StopReason] = None


@dataclass(slots=True)
class _Proposal:
    carrier_idx: int
    distance: int
    path: list[Position]


class AuctionMatcher:
    """
    Explicit state machine for one auction.

    Stages run ``PROPOSING -> ACCEPTING -> (PROPOSING | DRAINING) -> DONE``.
    Call :meth:`step` to advance one transition or :meth:`run` to finish.

    Parameters
    ----------
    carriers : sequence of Carrier
        Bidders; input order is the tie-break order.
    destinations : sequence of Destination
        Goods being auctioned.
    pathfinder : PathFinder
        Sole cost oracle; queried once per unmatched carrier per round.
    cost_model : CostModel
        Tile costs and per-query operation budget.
    goal_range : int
        Range at which a destination counts as reached.
    """

    def __init__(
        self,
        carriers: Sequence[Carrier],
        destinations: Sequence[Destination],
        pathfinder: PathFinder,
        *,
        cost_model: CostModel,
        goal_range: int = 1,
    ) -> None:
        self.carriers = list(carriers)
        self.destinations = list(destinations)
        self.pathfinder = pathfinder
        self.cost_model = cost_model
        self.goal_range = goal_range

        self.stage = Stage.PROPOSING
        self.stop_reason: StopReason | None = None
        self.rounds = 0
        self.unmatched: list[int] = list(range(len(self.carriers)))
        self.available: list[int] = list(range(len(self.destinations)))
        self.matches: dict[int, Match] = {}  # destination idx -> match
        self._proposals: dict[int, _Proposal] = {}

    # ------------------------------------------------------------------ #
    def step(self) -> Stage:
        if self.stage is Stage.PROPOSING:
            self._propose()
        elif self.stage is Stage.ACCEPTING:
            self._accept()
        elif self.stage is Stage.DRAINING:
            self.stage = Stage.DONE
        return self.stage

    def run(self) -> MatchResult:
        while self.stage is not Stage.DONE:
            self.step()
        return self.result()

    def result(self) -> MatchResult:
        matched_carriers = {id(m.carrier) for m in self.matches.values()}
        return MatchResult(
            remaining_carriers=[
                c for c in self.carriers if id(c) not in matched_carriers
            ],
            remaining_destinations=[self.destinations[i] for i in self.available],
            pairs=[self.matches[i] for i in sorted(self.matches)],
            rounds=self.rounds,
            stop_reason=self.stop_reason,
        )

    # ------------------------------------------------------------------ #
    def _drain(self, reason: StopReason) -> None:
        self.stop_reason = reason
        self.stage = Stage.DRAINING
        log.debug(
            f"  Auction draining after {self.rounds} round(s): {reason.value} "
            f"({len(self.matches)} match(es))"
        )

    def _propose(self) -> None:
        if not self.available:
            self._drain(StopReason.NO_DESTINATIONS)
            return

        self.rounds += 1
        goals = [
            Goal(self.destinations[i].pos, self.goal_range) for i in self.available
        ]
        proposals: dict[int, _Proposal] = {}
        for c_idx in self.unmatched:
            carrier = self.carriers[c_idx]
            result = self.pathfinder.search(carrier.pos, goals, self.cost_model)
            if result.incomplete or not result.path:
                continue
            d_idx = self._destination_at(result.path[-1])
            if d_idx is None:
                continue
            distance = len(result.path)
            current = proposals.get(d_idx)
            if current is None or distance < current.distance:
                proposals[d_idx] = _Proposal(c_idx, distance, result.path)

        if log.isEnabledFor(DEEP_DEBUG):
            log.deep(
                f"    Round {self.rounds}: "
                + ", ".join(
                    f"{self.carriers[p.carrier_idx].name}->"
                    f"{self.destinations[d].name}@{p.distance}"
                    for d, p in proposals.items()
                )
            )
        self._proposals = proposals
        self.stage = Stage.ACCEPTING

    def _accept(self) -> None:
        if not self._proposals:
            self._drain(StopReason.NO_PROPOSALS)
            return

        won: set[int] = set()
        for d_idx, proposal in self._proposals.items():
            self.matches[d_idx] = Match(
                carrier=self.carriers[proposal.carrier_idx],
                destination=self.destinations[d_idx],
                distance=proposal.distance,
                path=proposal.path,
            )
            won.add(proposal.carrier_idx)
        self._proposals = {}
        self.unmatched = [i for i in self.unmatched if i not in won]
        self.available = [i for i in self.available if i not in self.matches]

        if not self.unmatched:
            self._drain(StopReason.NO_CARRIERS)
        else:
            self.stage = Stage.PROPOSING

    def _destination_at(self, end: Position) -> int | None:
        """Exact position match first, else the nearest available in range."""
        for i in self.available:
            if self.destinations[i].pos == end:
                return i
        best: int | None = None
        best_range = self.goal_range + 1
        for i in self.available:
            r = end.range_to(self.destinations[i].pos)
            if r <= self.goal_range and r < best_range:
                best, best_range = i, r
        return best


def match_logistics_tasks(
    carriers: Sequence[Carrier],
    destinations: Sequence[Destination],
    pathfinder: PathFinder,
    *,
    cost_model: CostModel | None = None,
    goal_range: int = 1,
) -> MatchResult:
    """
    Run one auction between *carriers* and *destinations*.

    Parameters
    ----------
    carriers : sequence of Carrier
        Candidate carriers; iteration order breaks ties.
    destinations : sequence of Destination
        Candidate destinations.
    pathfinder : PathFinder
        Cost oracle.
    cost_model : CostModel, optional
        Defaults to plain=2, swamp=10, max_ops=2000.
    goal_range : int
        Range at which a destination counts as reached.

    Returns
    -------
    MatchResult
        Pairs plus the unmatched carriers and destinations, in input order.
    """
    matcher = AuctionMatcher(
        carriers,
        destinations,
        pathfinder,
        cost_model=cost_model or CostModel(),
        goal_range=goal_range,
    )
    return matcher.run()


# ───────────────────────── write-back ───────────────────────
def apply_matches(
    state: SchedulerState,
    pairs: Sequence[Match],
    kind: ReservationKind,
    *,
    action: str | None = None,
) -> list[Match]:
    """
    Turn auction pairs into carrier reservations.

    A collect reserves ``min(carrier free, unreserved source energy)``; a
    deliver reserves ``min(carrier current, destination free)``. Store
    targets mirror the amount under the carrier's name. Pairs that would
    reserve nothing are skipped and the carrier stays idle.

    Returns
    -------
    list[Match]
        The pairs actually written.
    """
    applied: list[Match] = []
    for match in pairs:
        carrier, dest = match.carrier, match.destination
        if kind == "collect":
            amount = min(carrier.energy.free, state.unreserved(dest.name))
        else:
            amount = min(carrier.energy.current, dest.energy.free)
        if amount <= 0:
            log.debug(f"  Skipping {kind} {carrier.name}->{dest.name}: nothing to move")
            continue

        dest_action = action
        if isinstance(dest, Store) and dest_action is None:
            dest_action = dest.actions.collect if kind == "collect" else dest.actions.deliver

        clear_carrier_reservation(state, carrier.name)
        carrier.reservation = CarrierReservation(
            kind=kind,
            target_id=dest.name,
            amount=amount,
            path=list(match.path),
            action=dest_action,
        )
        if isinstance(dest, Store):
            dest.reservations[carrier.name] = amount
        applied.append(match)

    if applied:
        log.info(f"  Assigned {len(applied)} {kind} reservation(s)")
    return applied


def clear_carrier_reservation(
    state: SchedulerState, carrier_name: EntityId
) -> CarrierReservation | None:
    """Drop a carrier's active reservation and its store mirror, if any."""
    carrier = state.carriers.get(carrier_name)
    if carrier is None or carrier.reservation is None:
        return None
    reservation = carrier.reservation
    carrier.reservation = None
    store = state.stores.get(reservation.target_id)
    if store is not None:
        store.reservations.pop(carrier_name, None)
    return reservation


def match_zone_carriers(
    state: SchedulerState,
    tasks: LogisticsTasks,
    pathfinder: PathFinder,
    config: Config,
) -> list[Match]:
    """
    Auction every zone's idle carriers against its ranked work lists.

    Idle empty carriers collect from stores (fullest first), then from
    producers. Idle full carriers deliver to overdue consumers, then due
    consumers, then stores that accept deliveries. Each tier is its own
    auction; carriers left over fall through to the next tier.
    """
    cost_model = CostModel(
        plain_cost=config.plain_cost,
        swamp_cost=config.swamp_cost,
        max_ops=config.max_ops,
    )
    applied: list[Match] = []

    def _tiered(
        carriers: list[Carrier],
        tiers: list[tuple[list[Destination], ReservationKind]],
    ) -> None:
        for destinations, kind in tiers:
            if not carriers:
                return
            if not destinations:
                continue
            result = match_logistics_tasks(
                carriers,
                destinations,
                pathfinder,
                cost_model=cost_model,
                goal_range=config.goal_range,
            )
            written = apply_matches(state, result.pairs, kind)
            applied.extend(written)
            done = {id(m.carrier) for m in written}
            carriers = [c for c in carriers if id(c) not in done]

    for zone, buckets in tasks.carriers_by_zone.items():
        stores = tasks.stores_by_zone.get(zone, [])
        ranked = tasks.consumers_by_zone.get(zone)

        collect_stores: list[Destination] = [
            s for s in stores if s.actions.collect and state.unreserved(s.name) > 0
        ]
        collect_producers: list[Destination] = [
            p
            for p in state.producers.values()
            if p.zone == zone and state.unreserved(p.name) > 0
        ]
        _tiered(
            list(buckets.idle_empty),
            [(collect_stores, "collect"), (collect_producers, "collect")],
        )

        overdue: list[Destination] = list(ranked.overdue) if ranked else []
        due: list[Destination] = list(ranked.due) if ranked else []
        deliver_stores: list[Destination] = [
            s for s in stores if s.actions.deliver and s.energy.free > 0
        ]
        _tiered(
            list(buckets.idle_full),
            [(overdue, "deliver"), (due, "deliver"), (deliver_stores, "deliver")],
        )

    if applied and log.isEnabledFor(logging.DEBUG):
        log.debug(
            "  Matches: "
            + ", ".join(f"{m.carrier.name}->{m.destination.name}" for m in applied)
        )
    return applied
