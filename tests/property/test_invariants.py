"""Property-based tests for haulengine invariants using Hypothesis.

These tests use randomized registries and auctions to verify that capacity
and bookkeeping invariants hold across a wide range of inputs.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from haulengine import GridPathFinder, InMemoryWorld, Position, Scheduler
from haulengine.systems.matching import match_logistics_tasks
from haulengine.systems.reservations import (
    bind_lease_to_source,
    consume_lease,
    create_demand_lease,
    find_source_respecting_leases,
)
from haulengine.state import SchedulerState
from tests.helpers.factories import (
    ScriptedPathFinder,
    mock_carrier,
    mock_consumer,
    mock_position,
)
from tests.helpers.invariants import assert_basic_invariants, assert_not_oversubscribed

ZONE = "W1N1"
SIZE = 15

coord_strategy = st.integers(min_value=0, max_value=SIZE - 1)
position_strategy = st.builds(Position, coord_strategy, coord_strategy, st.just(ZONE))
energy_strategy = st.tuples(
    st.integers(min_value=0, max_value=300), st.integers(min_value=0, max_value=300)
).map(lambda pair: (min(pair), max(pair)))  # (current, capacity)


def _registry(draw_stores, draw_carriers, draw_consumers):
    world = InMemoryWorld()
    world.add_zone(ZONE, source_energy_per_tick=5)
    sched = Scheduler.init(world, GridPathFinder(default_size=SIZE), max_ops=500)
    state = sched.state
    for i, (pos, (current, capacity)) in enumerate(draw_stores):
        state.register_store(f"s{i}", "container", pos, current=current, capacity=capacity)
        world.set_energy(f"s{i}", current, capacity)
    for i, (pos, (current, capacity)) in enumerate(draw_carriers):
        state.register_carrier(f"h{i}", "hauler", pos, current=current, capacity=capacity)
    for i, (pos, (current, capacity)) in enumerate(draw_consumers):
        state.register_consumer(f"k{i}", "extension", pos, current=current, capacity=capacity)
        world.set_energy(f"k{i}", current, capacity)
    return sched


entity_list = st.lists(st.tuples(position_strategy, energy_strategy), max_size=5)


class TestSchedulerInvariants:
    """Registry invariants hold after arbitrary turns."""

    @given(stores=entity_list, carriers=entity_list, consumers=entity_list)
    @settings(max_examples=40, deadline=5000)
    def test_steps_never_oversubscribe(self, stores, carriers, consumers):
        sched = _registry(stores, carriers, consumers)

        for _ in range(3):
            sched.step()
            assert_basic_invariants(sched.state)
            assert_not_oversubscribed(sched.state)

        # a carrier holds at most one reservation and never one that moves nothing
        for carrier in sched.state.carriers.values():
            if carrier.reservation is not None:
                assert carrier.reservation.amount > 0

    @given(stores=entity_list, carriers=entity_list, consumers=entity_list)
    @settings(max_examples=25, deadline=5000)
    def test_state_round_trip(self, stores, carriers, consumers):
        sched = _registry(stores, carriers, consumers)
        sched.step()

        restored = SchedulerState.from_dict(sched.state.to_dict())

        assert restored.stores == sched.state.stores
        assert restored.carriers == sched.state.carriers
        assert restored.consumers == sched.state.consumers


class TestAuctionInvariants:
    """Structural guarantees of one auction."""

    @given(
        carrier_pos=st.lists(position_strategy, max_size=8),
        dest_pos=st.lists(position_strategy, max_size=8),
        unreachable=st.sets(st.integers(min_value=0, max_value=7)),
    )
    @settings(max_examples=60, deadline=2000)
    def test_auction_pairs_and_termination(self, carrier_pos, dest_pos, unreachable):
        carriers = [mock_carrier(f"h{i}", pos=p) for i, p in enumerate(carrier_pos)]
        dests = [mock_consumer(f"k{i}", pos=p) for i, p in enumerate(dest_pos)]
        blocked = {dests[i].pos for i in unreachable if i < len(dests)}

        def distance(origin, target):
            if target in blocked:
                return None
            return max(origin.range_to(target), 1)

        pf = ScriptedPathFinder(distance)
        result = match_logistics_tasks(carriers, dests, pf)

        assert result.rounds <= min(len(carriers), len(dests)) + 1
        # each carrier and each destination appears in at most one pair
        assert len({id(m.carrier) for m in result.pairs}) == len(result.pairs)
        assert len({id(m.destination) for m in result.pairs}) == len(result.pairs)
        # pairs and remainders partition the inputs
        assert len(result.pairs) + len(result.remaining_carriers) == len(carriers)
        assert len(result.pairs) + len(result.remaining_destinations) == len(dests)
        # one path query per unmatched carrier per round
        assert len(pf.calls) <= len(carriers) * max(result.rounds, 1)
        # a matched destination is always reachable
        assert all(m.destination.pos not in blocked for m in result.pairs)


class TestLeaseInvariants:
    """Concurrent requesters never claim more than a source holds."""

    @given(
        source_energy=st.integers(min_value=0, max_value=500),
        requests=st.lists(st.integers(min_value=0, max_value=200), min_size=1, max_size=8),
        consume_mask=st.lists(st.booleans(), min_size=8, max_size=8),
    )
    @settings(max_examples=60, deadline=2000)
    def test_leases_bind_within_capacity(self, source_energy, requests, consume_mask):
        world = InMemoryWorld()
        world.add_zone(ZONE)
        state = SchedulerState()
        state.register_store(
            "c1", "container", mock_position(), current=source_energy, capacity=2000
        )
        world.set_energy("c1", source_energy, 2000)

        lease_ids = []
        for i, amount in enumerate(requests):
            name = f"b{i}"
            state.register_consumer(name, "builder", mock_position(), current=0, capacity=200)
            world.set_energy(name, 0, 200)
            lid = create_demand_lease(state, name, amount, current_tick=0, ttl=10)
            offer = find_source_respecting_leases(state, name, amount)
            if offer is not None:
                assert bind_lease_to_source(state, ZONE, lid, offer.source_id)
            lease_ids.append(lid)
            assert_not_oversubscribed(state)

        withdrawn = 0
        for lid, consume in zip(lease_ids, consume_mask):
            if consume:
                withdrawn += consume_lease(state, world, ZONE, lid).amount
            assert_not_oversubscribed(state)
            assert_basic_invariants(state)

        assert state.stores["c1"].energy.current == source_energy - withdrawn
        assert world.live_energy("c1") == source_energy - withdrawn
