"""Lease housekeeping event."""

from __future__ import annotations

from typing import TYPE_CHECKING

from haulengine.core.decorators import event

if TYPE_CHECKING:
    from haulengine.scheduler import Scheduler


@event
class ExpireLeases:
    """Delete leases whose ``expires_tick`` has passed, in every zone."""

    def execute(self, sched: Scheduler) -> None:
        from haulengine.systems.reservations import expire_leases

        n = expire_leases(sched.state, None, current_tick=sched.state.tick)
        if n:
            self.get_logger().info(f"  {n} lease(s) expired")
