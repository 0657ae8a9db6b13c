"""
Scheduler systems: plain functions operating on :class:`SchedulerState`.
"""

from .discovery import (
    CarrierBuckets,
    ConsumerDemand,
    LogisticsTasks,
    RankedConsumers,
    calc_avg_haul_distance,
    calc_dynamic_demand,
    calc_dynamic_supply,
    classify_consumers,
    discover_logistic_tasks,
    partition_carriers,
    rank_consumers,
    rank_stores,
    record_hauling_deficit,
)
from .matching import (
    AuctionMatcher,
    Match,
    MatchResult,
    Stage,
    StopReason,
    apply_matches,
    clear_carrier_reservation,
    match_logistics_tasks,
    match_zone_carriers,
)
from .refresh import cleanup_unobserved, refresh, refresh_zone
from .reservations import (
    SourceOffer,
    WithdrawOutcome,
    bind_lease_to_source,
    cancel_lease,
    consume_lease,
    create_demand_lease,
    expire_leases,
    find_source_respecting_leases,
    list_leases,
)

__all__ = [
    # refresh
    "cleanup_unobserved",
    "refresh_zone",
    "refresh",
    # discovery
    "CarrierBuckets",
    "ConsumerDemand",
    "RankedConsumers",
    "LogisticsTasks",
    "partition_carriers",
    "classify_consumers",
    "rank_consumers",
    "rank_stores",
    "calc_avg_haul_distance",
    "calc_dynamic_demand",
    "calc_dynamic_supply",
    "record_hauling_deficit",
    "discover_logistic_tasks",
    # matching
    "AuctionMatcher",
    "Match",
    "MatchResult",
    "Stage",
    "StopReason",
    "match_logistics_tasks",
    "apply_matches",
    "clear_carrier_reservation",
    "match_zone_carriers",
    # reservations
    "SourceOffer",
    "WithdrawOutcome",
    "create_demand_lease",
    "find_source_respecting_leases",
    "bind_lease_to_source",
    "consume_lease",
    "expire_leases",
    "cancel_lease",
    "list_leases",
]
