"""Event classes for haul-engine.

Events wrap the system functions in :mod:`haulengine.systems` and are
auto-registered on import so a :class:`~haulengine.core.Pipeline` can refer
to them by name:

- refresh.py -> wraps systems/refresh.py
- leases.py -> wraps systems/reservations.py housekeeping
- logistics.py -> wraps systems/discovery.py and systems/matching.py
"""

from haulengine.events.leases import ExpireLeases
from haulengine.events.logistics import DiscoverLogisticTasks, MatchIdleCarriers
from haulengine.events.refresh import CleanupUnobservedZones, RefreshEnergyLevels

__all__ = [
    "CleanupUnobservedZones",
    "RefreshEnergyLevels",
    "ExpireLeases",
    "DiscoverLogisticTasks",
    "MatchIdleCarriers",
]
