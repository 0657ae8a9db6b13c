"""Events keeping registry energy levels current."""

from __future__ import annotations

from typing import TYPE_CHECKING

from haulengine.core.decorators import event

if TYPE_CHECKING:
    from haulengine.scheduler import Scheduler


@event
class CleanupUnobservedZones:
    """
    Drop consumers and producers of zones the world no longer observes.

    Stores survive; deficit rows of those zones are pruned.
    """

    def execute(self, sched: Scheduler) -> None:
        from haulengine.systems.refresh import cleanup_unobserved

        removed = cleanup_unobserved(sched.state, sched.world.observed_zones())
        if removed:
            self.get_logger().debug(f"  {removed} stale row(s) removed")


@event
class RefreshEnergyLevels:
    """
    Re-read live energy for one zone, chosen round-robin by tick.

    Rule
    ----
        zone = observed_zones[tick mod len(observed_zones)]
    """

    def execute(self, sched: Scheduler) -> None:
        from haulengine.systems.refresh import refresh_zone

        zone = refresh_zone(sched.state, sched.world, sched.state.tick)
        sched.last_refreshed_zone = zone
