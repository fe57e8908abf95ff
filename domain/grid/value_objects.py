"""Grid Bounded Context - Value Objects.

Immutable data structures for grid cells and the two coordinate spaces
(geographic WGS84 and the local rendering frame).
All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from domain.grid.errors import InvalidCoordinateError

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
KEY_DECIMALS = 7
KEY_SCALE = 10**KEY_DECIMALS  # Fixed-point factor for cache keys


# ---------------------------------------------------------------------------
# OriginMode
# ---------------------------------------------------------------------------
class OriginMode(str, Enum):
    """Which geographic point the local frame's (0, 0) follows.

    USER_FOLLOWING: origin moves to every accepted user position (the world
        is re-centered on the device each update).
    FIXED_ANCHOR: origin is chosen once when tracking starts and held; only
        the user's local position moves.
    """

    USER_FOLLOWING = "user_following"
    FIXED_ANCHOR = "fixed_anchor"


# ---------------------------------------------------------------------------
# GeoPoint
# ---------------------------------------------------------------------------
class GeoPoint(BaseModel):
    """Geographic coordinate in WGS84 (Value Object).

    Invariants:
        GP-1: latitude in [-90, 90]
        GP-2: longitude in [-180, 180]
        GP-3: both finite

    Pydantic frozen models compare by value, so
    GeoPoint(latitude=1, longitude=2) == GeoPoint(latitude=1, longitude=2).
    """

    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# LocalPoint
# ---------------------------------------------------------------------------
class LocalPoint(BaseModel):
    """Position in the local rendering frame (Value Object).

    x grows eastward, z grows southward (north is negative z).
    """

    x: float = Field(allow_inf_nan=False)
    z: float = Field(allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    def distance_to(self, other: "LocalPoint") -> float:
        """Euclidean distance in local units."""
        return math.hypot(self.x - other.x, self.z - other.z)


# ---------------------------------------------------------------------------
# GridKey
# ---------------------------------------------------------------------------
class GridKey(NamedTuple):
    """Composite cache key: coordinates as fixed-point integers (x 10^7).

    Integer pairs compare exactly, so two coordinates that agree to seven
    decimals always land on the same key regardless of float noise.
    """

    lat_e7: int
    lng_e7: int

    @classmethod
    def from_coordinates(cls, latitude: float, longitude: float) -> "GridKey":
        """Normalize a raw coordinate pair.

        Raises:
            InvalidCoordinateError: If either value is NaN or infinite
        """
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            raise InvalidCoordinateError(latitude, longitude, "non-finite value")
        return cls(round(latitude * KEY_SCALE), round(longitude * KEY_SCALE))

    @property
    def latitude(self) -> float:
        """Normalized latitude (7 decimals)."""
        return self.lat_e7 / KEY_SCALE

    @property
    def longitude(self) -> float:
        """Normalized longitude (7 decimals)."""
        return self.lng_e7 / KEY_SCALE


def normalize_key(latitude: float, longitude: float) -> GridKey:
    return GridKey.from_coordinates(latitude, longitude)


# ---------------------------------------------------------------------------
# GridCell
# ---------------------------------------------------------------------------
class GridCell(BaseModel):
    """One materialized signal sample at a normalized coordinate (Value Object).

    Invariants:
        GC-1: signal_value in [0, 100]
        GC-2: color_code is a 24-bit RGB value
        GC-3: latitude/longitude already normalized to 7 decimals

    Shared by every consumer of the cache; never mutated after creation.
    """

    latitude: float
    longitude: float
    signal_value: int = Field(ge=0, le=100)
    color_code: int = Field(ge=0, le=0xFFFFFF)

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> GridKey:
        return GridKey.from_coordinates(self.latitude, self.longitude)

    @property
    def color_hex(self) -> str:
        """Color as '0xRRGGBB' for diagnostics."""
        return f"0x{self.color_code:06x}"


# ---------------------------------------------------------------------------
# LocationSample
# ---------------------------------------------------------------------------
class LocationSample(BaseModel):
    """One reading from a location provider (Value Object).

    GPS fixes and manually entered simulated positions share this type; the
    core treats them identically.
    """

    point: GeoPoint
    accuracy_m: float = Field(default=0.0, ge=0)
    timestamp: float
    source: Literal["gps", "simulated", "fallback"] = "gps"

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# CellQuery
# ---------------------------------------------------------------------------
class CellQuery(BaseModel):
    """Debug lookup result: the cell plus whether it was already cached."""

    cell: GridCell
    cache_hit: bool

    model_config = ConfigDict(frozen=True)
