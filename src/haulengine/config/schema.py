"""
Configuration dataclass for scheduler parameters.

Config instances are built by :meth:`Scheduler.init` after merging package
defaults, a user YAML file or mapping, and keyword overrides, and after
:class:`ConfigValidator` has checked the merged mapping. Config itself holds
data only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class Config:
    """
    Immutable scheduler configuration.

    Parameters
    ----------
    haul_threshold : int
        Missing-energy cut-off separating due from overdue consumers worth
        a haul.
    deficit_margin : float
        Demand must exceed supply by more than this before a zone reports a
        hauling deficit.
    default_haul_distance : float
        Average haul distance assumed when a zone has no store-to-consumer
        flow (positive).
    demand_basis : str
        ``"due_deficit"`` (filtered due-consumer shortfall) or
        ``"production_rate"`` (summed consumer production per tick).
    lease_ttl : int
        Ticks a direct-collection lease stays valid.
    plain_cost, swamp_cost : int
        Path cost per plain / swamp tile.
    max_ops : int
        Node budget of one path query.
    goal_range : int
        Range at which a destination counts as reached.
    carrier_lifetime : int
        Ticks until a newly registered carrier expires.
    renew_threshold : int
        Ticks before expiry at which a carrier should be renewed.
    urgency : dict
        Default ``{peace, war}`` urgency per entity kind (``default`` key
        used as the fallback).
    pipeline_path : str or None
        Custom pipeline YAML; ``None`` uses the packaged default.
    logging : dict
        ``default_level`` plus per-event ``events`` overrides.

    Examples
    --------
    >>> import haulengine as he
    >>> sched = he.Scheduler.init(world, pathfinder, lease_ttl=10)
    >>> sched.config.lease_ttl
    10
    """

    # Discovery
    haul_threshold: int = 50
    deficit_margin: float = 50.0
    default_haul_distance: float = 1.0
    demand_basis: str = "due_deficit"  # or "production_rate"

    # Leases
    lease_ttl: int = 50

    # Path queries
    plain_cost: int = 2
    swamp_cost: int = 10
    max_ops: int = 2000
    goal_range: int = 1

    # Registration defaults
    carrier_lifetime: int = 1500
    renew_threshold: int = 200
    urgency: dict[str, dict[str, int]] = field(default_factory=dict)

    # Wiring
    pipeline_path: str | None = None
    logging: dict[str, Any] = field(default_factory=dict)
