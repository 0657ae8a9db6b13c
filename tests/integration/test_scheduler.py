"""
Integration tests for Scheduler.step: refresh, discovery, matching and leases
running together through the default pipeline.
"""

from pathlib import Path

import pytest

from haulengine import GridPathFinder, InMemoryWorld, Position, Scheduler
from haulengine.systems.reservations import (
    bind_lease_to_source,
    consume_lease,
    create_demand_lease,
    find_source_respecting_leases,
)
from tests.helpers.invariants import assert_basic_invariants, assert_not_oversubscribed


def test_step_advances_tick_and_runs_pipeline(tiny_sched: Scheduler):
    tiny_sched.step()

    assert tiny_sched.state.tick == 1
    assert tiny_sched.last_refreshed_zone == "W1N1"
    assert tiny_sched.tasks is not None
    assert_basic_invariants(tiny_sched.state)


def test_step_accepts_explicit_tick(tiny_sched: Scheduler):
    tiny_sched.step(tick=40)
    assert tiny_sched.state.tick == 40


def test_idle_carriers_get_collect_and_deliver(tiny_sched: Scheduler):
    tiny_sched.step()
    carriers = tiny_sched.state.carriers

    collect = carriers["h_empty"].reservation
    deliver = carriers["h_full"].reservation
    assert collect is not None and (collect.kind, collect.target_id) == ("collect", "c1")
    assert collect.amount == 100
    assert collect.action == "withdraw"
    assert deliver is not None and (deliver.kind, deliver.target_id) == ("deliver", "spawn1")
    assert deliver.amount == 100
    assert {m.carrier.name for m in tiny_sched.matches} == {"h_empty", "h_full"}
    assert tiny_sched.state.stores["c1"].reservations == {"h_empty": 100}
    assert_not_oversubscribed(tiny_sched.state)


def test_matched_carriers_are_not_rematched(tiny_sched: Scheduler):
    tiny_sched.step()
    first = {n: c.reservation for n, c in tiny_sched.state.carriers.items()}

    tiny_sched.step()

    assert tiny_sched.matches == []
    assert {n: c.reservation for n, c in tiny_sched.state.carriers.items()} == first


def test_refresh_picks_up_live_energy(tiny_sched: Scheduler):
    tiny_sched.world.set_energy("c1", 1500)  # type: ignore[attr-defined]
    tiny_sched.step()
    assert tiny_sched.state.stores["c1"].energy.current == 1500


def test_vanished_store_cascades_to_carrier(tiny_sched: Scheduler):
    tiny_sched.step()
    assert tiny_sched.state.carriers["h_empty"].reservation is not None

    tiny_sched.world.remove("c1")  # type: ignore[attr-defined]
    tiny_sched.step()

    assert "c1" not in tiny_sched.state.stores
    assert tiny_sched.state.carriers["h_empty"].reservation is None
    assert_basic_invariants(tiny_sched.state)


def test_unobserved_zone_loses_consumers_but_keeps_stores(tiny_sched: Scheduler):
    world: InMemoryWorld = tiny_sched.world  # type: ignore[assignment]
    world.add_zone("W2N1")
    tiny_sched.state.register_consumer(
        "far_spawn", "spawn", Position(5, 5, "W2N1"), current=0, capacity=300
    )
    tiny_sched.state.register_store(
        "far_box", "container", Position(6, 6, "W2N1"), current=100, capacity=2000
    )

    world.set_observed("W2N1", False)
    tiny_sched.step()

    assert "far_spawn" not in tiny_sched.state.consumers
    assert "far_box" in tiny_sched.state.stores


def test_run_multiple_turns_round_robin():
    world = InMemoryWorld()
    for zone in ("A", "B", "C"):
        world.add_zone(zone)
    sched = Scheduler.init(world, GridPathFinder(default_size=10))

    seen = []
    for _ in range(6):
        sched.step()
        seen.append(sched.last_refreshed_zone)

    assert seen == ["B", "C", "A", "B", "C", "A"]
    sched.run(4)
    assert sched.state.tick == 10


# ============================================================================
# Hauling deficit
# ============================================================================


def test_zone_short_on_carriers_reports_deficit():
    world = InMemoryWorld()
    world.add_zone("W1N1", source_energy_per_tick=200)
    sched = Scheduler.init(world, GridPathFinder(default_size=20))
    sched.state.register_consumer(
        "spawn1", "spawn", Position(5, 5, "W1N1"), current=0, capacity=300
    )
    sched.state.register_carrier(
        "h1", "hauler", Position(10, 10, "W1N1"), current=0, capacity=50
    )

    sched.step()

    deficit = sched.state.hauling_deficit["W1N1"]
    assert deficit.demand == pytest.approx(200.0)
    assert deficit.supply == pytest.approx(50.0)
    assert deficit.net == pytest.approx(150.0)


def test_zone_without_carriers_has_no_supply_and_no_deficit():
    world = InMemoryWorld()
    world.add_zone("W1N1", source_energy_per_tick=200)
    sched = Scheduler.init(world, GridPathFinder(default_size=20))
    sched.state.register_consumer(
        "spawn1", "spawn", Position(5, 5, "W1N1"), current=0, capacity=300
    )

    sched.step()

    assert sched.tasks is not None
    assert sched.tasks.demand_by_zone["W1N1"] > 0
    assert "W1N1" not in sched.tasks.supply_by_zone
    assert sched.state.hauling_deficit == {}


def test_deficit_clears_once_enough_carriers():
    world = InMemoryWorld()
    world.add_zone("W1N1", source_energy_per_tick=200)
    sched = Scheduler.init(world, GridPathFinder(default_size=20))
    sched.state.register_consumer(
        "spawn1", "spawn", Position(5, 5, "W1N1"), current=0, capacity=300
    )
    sched.state.register_carrier(
        "h1", "hauler", Position(10, 10, "W1N1"), current=0, capacity=50
    )
    sched.step()
    assert "W1N1" in sched.state.hauling_deficit

    sched.state.register_carrier(
        "h2", "hauler", Position(11, 10, "W1N1"), current=0, capacity=500
    )
    sched.step()

    assert sched.state.hauling_deficit == {}


# ============================================================================
# Leases alongside carriers
# ============================================================================


def test_lease_respects_carrier_collect(tiny_sched: Scheduler):
    state, world = tiny_sched.state, tiny_sched.world
    state.register_consumer(
        "builder1", "builder", Position(6, 6, "W1N1"), current=0, capacity=500
    )
    world.set_energy("builder1", 0, 500)  # type: ignore[attr-defined]
    tiny_sched.step()  # h_empty claims 100 of c1's 400

    lid = create_demand_lease(state, "builder1", 500, current_tick=state.tick, ttl=5)
    offer = find_source_respecting_leases(state, "builder1", 500)
    assert offer is not None and offer.amount == 300
    assert bind_lease_to_source(state, "W1N1", lid, offer.source_id)
    assert_not_oversubscribed(state)

    outcome = consume_lease(state, world, "W1N1", lid)

    assert outcome.ok and outcome.amount == 300
    assert state.stores["c1"].energy.current == 100
    assert state.unreserved("c1") == 0  # the carrier still holds its 100
    assert_basic_invariants(state)


def test_configured_lease_ttl_drives_expiry(tiny_sched: Scheduler):
    sched = Scheduler.init(tiny_sched.world, tiny_sched.pathfinder, lease_ttl=3)
    state = sched.state
    state.register_consumer(
        "builder1", "builder", Position(6, 6, "W1N1"), current=0, capacity=50
    )

    lid = create_demand_lease(state, "builder1", 20, current_tick=state.tick)

    assert state.lease_ttl == 3
    assert state.leases.get("W1N1", lid).expires_tick == 3
    sched.run(3)
    assert len(state.leases) == 1
    sched.step()
    assert len(state.leases) == 0


def test_unconsumed_lease_expires_during_steps(tiny_sched: Scheduler):
    state = tiny_sched.state
    state.register_consumer(
        "builder1", "builder", Position(6, 6, "W1N1"), current=0, capacity=50
    )
    lid = create_demand_lease(state, "builder1", 20, current_tick=0, ttl=2)
    bind_lease_to_source(state, "W1N1", lid, "c1")

    tiny_sched.run(2)
    assert len(state.leases) == 1
    tiny_sched.step()
    assert len(state.leases) == 0
    assert lid not in state.stores["c1"].reservations


# ============================================================================
# Custom pipelines and persistence
# ============================================================================


def test_custom_pipeline_yaml(tiny_sched: Scheduler, tmp_path: Path):
    path = tmp_path / "pipeline.yml"
    path.write_text("events:\n  - refresh_energy_levels\n  - expire_leases\n")

    sched = Scheduler.init(
        tiny_sched.world,
        tiny_sched.pathfinder,
        state=tiny_sched.state,
        pipeline_path=str(path),
    )
    sched.step()

    assert sched.pipeline.names == ["refresh_energy_levels", "expire_leases"]
    assert sched.tasks is None
    assert all(c.reservation is None for c in sched.state.carriers.values())


def test_pipeline_yaml_with_unknown_event_rejected(tiny_sched: Scheduler, tmp_path: Path):
    path = tmp_path / "pipeline.yml"
    path.write_text("events:\n  - summon_dragons\n")
    with pytest.raises(ValueError, match="not found in registry"):
        Scheduler.init(tiny_sched.world, tiny_sched.pathfinder, pipeline_path=str(path))


def test_get_event_from_pipeline(tiny_sched: Scheduler):
    assert tiny_sched.get_event("expire_leases").name == "expire_leases"
    with pytest.raises(KeyError):
        tiny_sched.get_event("summon_dragons")


def test_resume_from_saved_state(tiny_sched: Scheduler, tmp_path: Path):
    from haulengine.state import SchedulerState

    tiny_sched.step()
    path = tmp_path / "state.json"
    tiny_sched.state.save(path)

    resumed = Scheduler.init(
        tiny_sched.world, tiny_sched.pathfinder, state=SchedulerState.load(path)
    )
    resumed.step()

    assert resumed.state.tick == 2
    assert resumed.matches == []
    assert resumed.state.carriers["h_empty"].reservation is not None
    assert_basic_invariants(resumed.state)
