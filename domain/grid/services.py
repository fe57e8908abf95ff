"""Grid Bounded Context - Domain Services.

Pure in-memory logic: the append-only cell cache, the flat-earth mapping
between WGS84 and the local rendering frame, and the visible-window query.
NO I/O operations - location input arrives through the ports in
`domain/grid/repositories.py`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from pyproj import Geod

from domain.coverage.services import (
    DEFAULT_DEGREES_PER_KM,
    signal_strength,
    signal_to_color,
)
from domain.coverage.value_objects import SignalField
from domain.grid.errors import InvalidGridSettingsError
from domain.grid.value_objects import (
    KEY_SCALE,
    CellQuery,
    GeoPoint,
    GridCell,
    GridKey,
    LocalPoint,
    OriginMode,
    normalize_key,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_UNITS_PER_KM = 100.0  # Local frame units per kilometer
MIN_CELL_SIZE_DEG = 10 / KEY_SCALE  # Neighbouring cells must get distinct keys

_geod = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Coordinate Mapper
# ---------------------------------------------------------------------------
class CoordinateMapper:
    """Converts between geographic and local-frame coordinates.

    Both directions share one origin and one pair of scale constants, so
    geo_to_local(*local_to_geo(x, z)) returns (x, z) up to float noise.

    Parameters
    ----------
    origin: GeoPoint
        Geographic point mapped to local (0, 0).
    mode: OriginMode
        Fixed for the mapper's lifetime. USER_FOLLOWING moves the origin on
        every observe(); FIXED_ANCHOR ignores observe().
    degrees_per_km, units_per_km: float
        Flat-earth scale (valid for a few kilometers around the origin).
    """

    def __init__(
        self,
        origin: GeoPoint,
        mode: OriginMode = OriginMode.FIXED_ANCHOR,
        degrees_per_km: float = DEFAULT_DEGREES_PER_KM,
        units_per_km: float = DEFAULT_UNITS_PER_KM,
    ) -> None:
        if degrees_per_km <= 0 or units_per_km <= 0:
            raise InvalidGridSettingsError(
                f"Scale must be positive: degrees_per_km={degrees_per_km}, "
                f"units_per_km={units_per_km}"
            )
        self._origin = origin
        self.mode = OriginMode(mode)
        self.degrees_per_km = degrees_per_km
        self.units_per_km = units_per_km

    @property
    def origin(self) -> GeoPoint:
        return self._origin

    def observe(self, position: GeoPoint) -> bool:
        """Feed the latest user position; returns True if the origin moved."""
        if self.mode is not OriginMode.USER_FOLLOWING:
            return False
        if position == self._origin:
            return False
        self._origin = position
        return True

    def geo_to_local(self, latitude: float, longitude: float) -> LocalPoint:
        """Geographic -> local frame (x east, z south)."""
        offset_lat = latitude - self._origin.latitude
        offset_lng = longitude - self._origin.longitude
        x = (offset_lng / self.degrees_per_km) * self.units_per_km
        z = -(offset_lat / self.degrees_per_km) * self.units_per_km
        return LocalPoint(x=x, z=z)

    def local_to_geo(self, x: float, z: float) -> tuple[float, float]:
        """Local frame -> (latitude, longitude).

        Not rounded: normalization to 7 decimals happens when the result is
        turned into a cache key.
        """
        latitude = self._origin.latitude - (z / self.units_per_km) * self.degrees_per_km
        longitude = (
            self._origin.longitude + (x / self.units_per_km) * self.degrees_per_km
        )
        return latitude, longitude

    def place(self, cell: GridCell) -> LocalPoint:
        """Local position at which the renderer should draw a cell."""
        return self.geo_to_local(cell.latitude, cell.longitude)


# ---------------------------------------------------------------------------
# Grid Cache
# ---------------------------------------------------------------------------
class GridCache:
    """Append-only store of materialized grid cells.

    Cells are created on first query and then returned as the identical
    object forever, so a revisited coordinate never changes value. There is
    no eviction; memory grows with the area visited during the session.
    """

    def __init__(self, field: SignalField) -> None:
        self.field = field
        self._cells: dict[GridKey, GridCell] = {}

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, GridKey):
            return item in self._cells
        if isinstance(item, tuple) and len(item) == 2:
            return normalize_key(*item) in self._cells
        return False

    def __iter__(self) -> Iterator[GridCell]:
        return iter(self._cells.values())

    @property
    def size(self) -> int:
        return len(self._cells)

    def get_or_create_cell(self, latitude: float, longitude: float) -> GridCell:
        """Return the cell at the normalized coordinate, creating it once.

        Raises:
            InvalidCoordinateError: If latitude or longitude is non-finite
        """
        key = normalize_key(latitude, longitude)
        cell = self._cells.get(key)
        if cell is not None:
            return cell

        value = signal_strength(self.field, key.latitude, key.longitude)
        cell = GridCell(
            latitude=key.latitude,
            longitude=key.longitude,
            signal_value=value,
            color_code=signal_to_color(value),
        )
        self._cells[key] = cell
        return cell

    def query_cell(self, latitude: float, longitude: float) -> CellQuery:
        """Diagnostic lookup reporting whether the cell was already cached."""
        key = normalize_key(latitude, longitude)
        hit = key in self._cells
        cell = self.get_or_create_cell(latitude, longitude)
        logger.debug(
            "Cell (%.7f, %.7f): signal=%d color=%s %s",
            cell.latitude,
            cell.longitude,
            cell.signal_value,
            cell.color_hex,
            "cached" if hit else "new",
        )
        return CellQuery(cell=cell, cache_hit=hit)

    def compute_visible_cells(
        self,
        mapper: CoordinateMapper,
        user_local: LocalPoint,
        *,
        grid_center: GeoPoint,
        cell_size_deg: float,
        radius: int,
    ) -> tuple[GridCell, ...]:
        """Square window of (2*radius+1)^2 cells around the user.

        Grid indices are counted from grid_center (not from the mapper's
        origin), so the lattice stays put even when the origin follows the
        user.

        Args:
            mapper: Converts the user's local position back to geography
            user_local: User position in the local frame
            grid_center: Geographic point of lattice index (0, 0)
            cell_size_deg: Lattice spacing in degrees
            radius: Half-width of the window in cells

        Returns:
            Cells in loop order: longitude offset outer, latitude offset inner

        Raises:
            InvalidGridSettingsError: If cell_size_deg or radius is invalid
        """
        if cell_size_deg < MIN_CELL_SIZE_DEG:
            raise InvalidGridSettingsError(
                f"cell_size_deg must be >= {MIN_CELL_SIZE_DEG}, got {cell_size_deg}"
            )
        if radius < 0:
            raise InvalidGridSettingsError(f"radius must be >= 0, got {radius}")

        user_lat, user_lng = mapper.local_to_geo(user_local.x, user_local.z)
        grid_x = round((user_lng - grid_center.longitude) / cell_size_deg)
        grid_z = round((user_lat - grid_center.latitude) / cell_size_deg)

        before = len(self._cells)
        cells: list[GridCell] = []
        for dx in range(-radius, radius + 1):
            for dz in range(-radius, radius + 1):
                cells.append(
                    self.get_or_create_cell(
                        grid_center.latitude + (grid_z + dz) * cell_size_deg,
                        grid_center.longitude + (grid_x + dx) * cell_size_deg,
                    )
                )

        logger.debug(
            "Visible window: %d cells (%d new) | cache total: %d | user: (%.5f, %.5f)",
            len(cells),
            len(self._cells) - before,
            len(self._cells),
            user_lat,
            user_lng,
        )
        return tuple(cells)


# ---------------------------------------------------------------------------
# Heading
# ---------------------------------------------------------------------------
def bearing_deg(start: GeoPoint, end: GeoPoint) -> float:
    """Initial geodesic azimuth from start to end in [0, 360), north = 0.

    Uses pyproj.Geod.inv on WGS84.
    """
    azimuth, _, _ = _geod.inv(
        start.longitude, start.latitude, end.longitude, end.latitude
    )
    bearing = float(azimuth) % 360.0
    return 0.0 if bearing >= 360.0 else bearing
