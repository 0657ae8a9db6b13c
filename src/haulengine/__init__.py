"""
haul-engine - Energy-logistics scheduler for tick-driven world simulations
===========================================================================

haul-engine decides, every turn, which carrier agent moves energy between
which producers, stores and consumers, and lets stationary agents claim
energy straight from a source without double-booking it. The work is split
so that each turn stays within a small compute allowance:

- one zone's energy readings are refreshed per turn (round-robin);
- a discovery pass ranks consumers and stores and estimates hauling demand
  versus carrier supply per zone;
- a greedy multi-round auction pairs idle carriers with destinations, using
  the pathfinder as the only cost oracle;
- leases serialise direct collection against each source's capacity.

Quick Start
-----------
>>> import haulengine as he
>>> world = he.InMemoryWorld()
>>> world.add_zone("W1N1", source_energy_per_tick=10)
>>> sched = he.Scheduler.init(world, he.GridPathFinder())
>>> pos = he.Position(10, 10, "W1N1")
>>> sched.state.register_store("c1", "container", pos, current=500, capacity=2000)
>>> world.set_energy("c1", 500, 2000)
>>> sched.state.register_carrier(
...     "h1", "hauler", he.Position(12, 10, "W1N1"), current=0, capacity=100
... )
>>> sched.step()
>>> sched.state.carriers["h1"].reservation.target_id
'c1'

Custom configuration:

>>> sched = he.Scheduler.init(world, he.GridPathFinder(), config="my_config.yml", lease_ttl=20)

Public API
----------
Scheduler
    Turn-stepped facade running the event pipeline.
SchedulerState
    Entity registry, lease book and hauling-deficit map.
InMemoryWorld, GridPathFinder
    Reference world sensor and pathfinder.
Event, event, Pipeline
    Extension points for custom per-turn steps.
logging
    Logging with a DEEP_DEBUG level and per-event levels.

Notes
-----
- Configuration precedence: defaults.yml -> user config -> kwargs
- Pipeline events execute in explicit order (default_pipeline.yml)
"""

from __future__ import annotations

__version__: str = "0.1.0"

from . import logging  # noqa: E402 (circular-safe)
from .config import Config  # noqa: E402
from .core import (  # noqa: E402
    Event,
    Pipeline,
    event,
    get_event,
    list_events,
)
from .pathfinding import GridPathFinder  # noqa: E402
from .relationships import EnergyReservation, LeaseBook  # noqa: E402
from .roles import (  # noqa: E402
    Carrier,
    Consumer,
    Position,
    Producer,
    Store,
    StoreActions,
    Urgency,
)
from .scheduler import Scheduler  # noqa: E402
from .state import HaulingDeficit, SchedulerState  # noqa: E402
from .world import (  # noqa: E402
    CostModel,
    Goal,
    InMemoryWorld,
    PathFinder,
    PathResult,
    WithdrawResult,
    WorldSensor,
)

__all__ = [
    "__version__",
    "logging",
    "Config",
    "Scheduler",
    "SchedulerState",
    "HaulingDeficit",
    "Event",
    "Pipeline",
    "event",
    "get_event",
    "list_events",
    "Producer",
    "Consumer",
    "Store",
    "Carrier",
    "Position",
    "StoreActions",
    "Urgency",
    "EnergyReservation",
    "LeaseBook",
    "WorldSensor",
    "PathFinder",
    "InMemoryWorld",
    "GridPathFinder",
    "CostModel",
    "Goal",
    "PathResult",
    "WithdrawResult",
]
