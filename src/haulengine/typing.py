"""
Type aliases for haul-engine.

Provides the scalar id aliases used throughout the registry and the NumPy
array aliases used by the vectorised ranking and distance kernels.
"""

from typing import Literal, TypeAlias

import numpy as np
from numpy.typing import NDArray

# === Identifiers ===

EntityId: TypeAlias = str
"""Stable name/id of a registered producer, consumer, store or carrier."""

ZoneName: TypeAlias = str
"""Name of a spatial zone (partition of the world)."""

LeaseId: TypeAlias = str
"""Id of an energy reservation (lease)."""

ReservationKind: TypeAlias = Literal["collect", "deliver"]
"""Direction of a carrier reservation."""

Category: TypeAlias = Literal["producer", "consumer", "store", "carrier"]
"""Discriminant carried by every entity record."""

# === Internal Array Aliases ===

Float1D: TypeAlias = NDArray[np.float64]
Int1D: TypeAlias = NDArray[np.int64]
Bool1D: TypeAlias = NDArray[np.bool_]
Idx1D: TypeAlias = NDArray[np.intp]

Float2D: TypeAlias = NDArray[np.float64]
Int2D: TypeAlias = NDArray[np.int64]
Terrain2D: TypeAlias = NDArray[np.uint8]

__all__ = [
    "EntityId",
    "ZoneName",
    "LeaseId",
    "ReservationKind",
    "Category",
    "Float1D",
    "Int1D",
    "Bool1D",
    "Idx1D",
    "Float2D",
    "Int2D",
    "Terrain2D",
]
