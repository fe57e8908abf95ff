"""Coverage Bounded Context - Domain Services.

Pure functions over a SignalField. NO I/O and no caching here - the grid
context owns materialized cells and calls into this module on cache misses.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pyproj import Geod

from domain.coverage.value_objects import (
    MAX_SIGNAL,
    MIN_SIGNAL,
    Emitter,
    EmitterDistance,
    SignalField,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DIFFUSE_WEIGHT = 0.4  # Per-emitter weight inside the overlapping-coverage sum
BEST_MIX = 0.8  # Share of the strongest single emitter in the final value
TOTAL_MIX = 0.2  # Share of the diffuse sum in the final value

DEFAULT_DEGREES_PER_KM = 0.009  # ~1 km of latitude, also applied to longitude

# (threshold, 0xRRGGBB) - first band whose threshold <= value wins
COLOR_BANDS: tuple[tuple[int, int], ...] = (
    (80, 0xFF0000),  # red
    (65, 0xFF4500),  # orange-red
    (50, 0xFF8C00),  # orange
    (35, 0xFFBF00),  # amber
    (25, 0xFFFF00),  # yellow
    (15, 0x00FF00),  # green
    (8, 0x00BFA5),  # teal
)
FALLBACK_COLOR = 0x0000FF  # blue

# WGS84 ellipsoid for display distances (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Distance & Falloff
# ---------------------------------------------------------------------------
def planar_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Flat distance in degrees: sqrt(dlat^2 + dlng^2)."""
    return math.sqrt((lat1 - lat2) ** 2 + (lng1 - lng2) ** 2)


def emitter_contribution(
    emitter: Emitter, latitude: float, longitude: float, max_distance_deg: float
) -> float:
    """Quadratic falloff of one emitter at a point.

    Returns power at the emitter itself and exactly 0.0 from
    max_distance_deg outward.
    """
    distance = planar_distance(
        latitude, longitude, emitter.latitude, emitter.longitude
    )
    if distance >= max_distance_deg:
        return 0.0
    return emitter.power * (1 - distance / max_distance_deg) ** 2


def _round_half_up(value: float) -> int:
    # Halves round up, not to even
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Main Service: signal_strength
# ---------------------------------------------------------------------------
def signal_strength(field: SignalField, latitude: float, longitude: float) -> int:
    """Synthetic signal strength at a point, an integer in [0, 100].

    The strongest single emitter dominates (80%), overlapping coverage adds
    a light boost (20% of the 0.4-weighted sum).

    Args:
        field: Emitters and falloff radius
        latitude: Query latitude in degrees (no range restriction)
        longitude: Query longitude in degrees (no range restriction)

    Returns:
        Clamped, rounded signal value

    Example:
        >>> field = SignalField(emitters=(Emitter(id="a", latitude=25.033,
        ...     longitude=121.5654, power=100),))
        >>> signal_strength(field, 25.033, 121.5654)
        88
    """
    total = 0.0
    best = 0.0
    for emitter in field.emitters:
        contribution = emitter_contribution(
            emitter, latitude, longitude, field.max_distance_deg
        )
        if contribution > 0:
            total += contribution * DIFFUSE_WEIGHT
            best = max(best, contribution)

    raw = best * BEST_MIX + total * TOTAL_MIX
    return _round_half_up(min(MAX_SIGNAL, max(MIN_SIGNAL, raw)))


def signal_to_color(value: int) -> int:
    """Map a signal value to its 0xRRGGBB presentation color."""
    for threshold, color in COLOR_BANDS:
        if value >= threshold:
            return color
    return FALLBACK_COLOR


# ---------------------------------------------------------------------------
# Vectorized Sampling
# ---------------------------------------------------------------------------
def sample_signal_field(
    field: SignalField, latitudes: ArrayLike, longitudes: ArrayLike
) -> NDArray[np.int64]:
    """Evaluate signal_strength element-wise over broadcastable arrays.

    Uses the same formula as the scalar path, so every element equals
    signal_strength(field, lat, lng) for the corresponding pair.
    """
    lats = np.asarray(latitudes, dtype=np.float64)
    lngs = np.asarray(longitudes, dtype=np.float64)
    lats, lngs = np.broadcast_arrays(lats, lngs)

    total = np.zeros(lats.shape, dtype=np.float64)
    best = np.zeros(lats.shape, dtype=np.float64)
    for emitter in field.emitters:
        distance = np.sqrt(
            (lats - emitter.latitude) ** 2 + (lngs - emitter.longitude) ** 2
        )
        falloff = np.clip(1 - distance / field.max_distance_deg, 0.0, None)
        contribution = np.where(
            distance < field.max_distance_deg, emitter.power * falloff**2, 0.0
        )
        total += contribution * DIFFUSE_WEIGHT
        best = np.maximum(best, contribution)

    raw = np.clip(best * BEST_MIX + total * TOTAL_MIX, MIN_SIGNAL, MAX_SIGNAL)
    return np.floor(raw + 0.5).astype(np.int64)


# ---------------------------------------------------------------------------
# Emitter Queries
# ---------------------------------------------------------------------------
def rank_emitters(
    field: SignalField, latitude: float, longitude: float
) -> tuple[EmitterDistance, ...]:
    """All emitters ordered by planar distance from the point (nearest first)."""
    ranked: list[EmitterDistance] = []
    for emitter in field.emitters:
        _, _, distance_m = _geod.inv(
            longitude, latitude, emitter.longitude, emitter.latitude
        )
        ranked.append(
            EmitterDistance(
                emitter=emitter,
                distance_deg=planar_distance(
                    latitude, longitude, emitter.latitude, emitter.longitude
                ),
                distance_m=float(abs(distance_m)),
            )
        )
    ranked.sort(key=lambda item: item.distance_deg)
    return tuple(ranked)


def emitters_within(
    field: SignalField,
    latitude: float,
    longitude: float,
    radius_km: float,
    degrees_per_km: float = DEFAULT_DEGREES_PER_KM,
) -> tuple[Emitter, ...]:
    """Emitters whose planar distance is at most radius_km (inclusive).

    Used to decide which emitter markers are worth showing around the user.
    """
    if radius_km < 0:
        raise ValueError("radius_km must be non-negative")
    limit = radius_km * degrees_per_km
    return tuple(
        emitter
        for emitter in field.emitters
        if planar_distance(latitude, longitude, emitter.latitude, emitter.longitude)
        <= limit
    )
