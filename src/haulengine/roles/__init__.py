"""Logistics entity records (one dataclass per role)."""

from typing import TypeAlias, Union

from haulengine.roles.carrier import Carrier
from haulengine.roles.common import (
    CarrierReservation,
    DecayTiming,
    EnergyLevel,
    Position,
    StoreActions,
    Timing,
    Urgency,
)
from haulengine.roles.consumer import Consumer
from haulengine.roles.producer import Producer
from haulengine.roles.store import Store

Destination: TypeAlias = Union[Consumer, Store, Producer]
"""Anything a carrier can be matched to; dispatch on ``.category``."""

__all__ = [
    "Producer",
    "Consumer",
    "Store",
    "Carrier",
    "Destination",
    "CarrierReservation",
    "DecayTiming",
    "EnergyLevel",
    "Position",
    "StoreActions",
    "Timing",
    "Urgency",
]
