"""Discovery and matching events."""

from __future__ import annotations

from typing import TYPE_CHECKING

from haulengine import logging
from haulengine.core.decorators import event

if TYPE_CHECKING:
    from haulengine.scheduler import Scheduler


@event
class DiscoverLogisticTasks:
    """
    Build ranked work lists and update the hauling-deficit map.

    The resulting :class:`~haulengine.systems.LogisticsTasks` is kept on
    ``sched.tasks`` for the matching event and for callers.
    """

    def execute(self, sched: Scheduler) -> None:
        from haulengine.systems.discovery import discover_logistic_tasks

        log = self.get_logger()
        sched.tasks = discover_logistic_tasks(
            sched.state,
            sched.world,
            current_tick=sched.state.tick,
            config=sched.config,
        )
        if log.isEnabledFor(logging.DEBUG):
            for zone, demand in sched.tasks.demand_by_zone.items():
                supply = sched.tasks.supply_by_zone.get(zone)
                log.debug(f"  {zone}: demand={demand:.1f} supply={supply}")


@event
class MatchIdleCarriers:
    """
    Auction idle carriers against the latest discovered work lists.

    Empty carriers get collect reservations, loaded carriers get deliver
    reservations. Runs discovery first if no tasks are available yet.
    """

    def execute(self, sched: Scheduler) -> None:
        from haulengine.systems.discovery import discover_logistic_tasks
        from haulengine.systems.matching import match_zone_carriers

        if sched.tasks is None:
            sched.tasks = discover_logistic_tasks(
                sched.state,
                sched.world,
                current_tick=sched.state.tick,
                config=sched.config,
            )
        sched.matches = match_zone_carriers(
            sched.state, sched.tasks, sched.pathfinder, sched.config
        )
        self.get_logger().info(f"  {len(sched.matches)} carrier(s) matched")
