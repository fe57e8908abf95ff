"""Heatmap session: the single coordinator of cache, mapper and update loop.

Owns exactly one GridCache for the session lifetime. Location samples flow
in through `on_location` (usually subscribed to a LocationProvider); the
visible window flows out to registered CellSinks. Everything runs
synchronously on the caller's thread - handlers complete before the next
sample is processed.

Lifecycle:
1) First sample (or start_tracking) anchors the local frame and the grid
   lattice at the user's position
2) Each sample updates UserPosition and the GPS-derived heading
3) The mapper observes the position (moves its origin only in
   USER_FOLLOWING mode)
4) The recompute policy decides whether to rebuild the visible window
5) Rebuilt windows are pushed to every sink
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from domain.coverage.services import emitters_within, rank_emitters, signal_strength
from domain.coverage.value_objects import Emitter, EmitterDistance, SignalField
from domain.grid.errors import GridError
from domain.grid.policies import RecomputePolicy
from domain.grid.repositories import CellSink, LocationProvider
from domain.grid.services import CoordinateMapper, GridCache, bearing_deg
from domain.grid.value_objects import (
    CellQuery,
    GeoPoint,
    GridCell,
    LocalPoint,
    LocationSample,
    OriginMode,
)
from shared.default_emitters import DEFAULT_EMITTERS, DEFAULT_LOCATION

from .settings import HeatmapSettings

logger = logging.getLogger(__name__)


class HeatmapSession:
    """Coordinates location input, the grid cache and the renderer.

    Parameters
    ----------
    settings: HeatmapSettings | None
        Grid/mapping/throttle parameters; defaults to HeatmapSettings().
    field: SignalField | None
        Emitter configuration; defaults to the shared emitter table with
        settings.max_distance_deg.
    policy: RecomputePolicy | None
        Throttle for window rebuilds; defaults to settings.build_policy().
    clock: Callable[[], float]
        Time source handed to the policy; also stamps fallback samples.
    """

    def __init__(
        self,
        settings: HeatmapSettings | None = None,
        field: SignalField | None = None,
        policy: RecomputePolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or HeatmapSettings()
        if field is None:
            field = SignalField(
                emitters=DEFAULT_EMITTERS,
                max_distance_deg=self.settings.max_distance_deg,
            )
        self.field = field
        self.cache = GridCache(self.field)
        self.policy = policy if policy is not None else self.settings.build_policy()
        self._clock = clock
        self._sinks: list[CellSink] = []

        self.mapper: CoordinateMapper | None = None
        self.grid_center: GeoPoint | None = None
        # Fixed frame at the grid center; policies measure movement in it
        self._grid_frame: CoordinateMapper | None = None

        self.user_position: GeoPoint | None = None
        self.user_local: LocalPoint | None = None
        self.last_sample: LocationSample | None = None
        self.heading_deg: float | None = None

        self._visible: tuple[GridCell, ...] = ()
        self._last_update_time: float | None = None
        self._last_update_position: LocalPoint | None = None

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------
    def attach(self, provider: LocationProvider) -> None:
        """Subscribe this session to a location provider."""
        provider.subscribe(self.on_location)

    def add_sink(self, sink: CellSink) -> None:
        """Register a renderer; it receives every rebuilt window."""
        self._sinks.append(sink)

    @property
    def visible_cells(self) -> tuple[GridCell, ...]:
        """Most recent visible window (read-only view over the cache)."""
        return self._visible

    @property
    def is_anchored(self) -> bool:
        return self.mapper is not None

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def on_location(self, sample: LocationSample) -> bool:
        """Handle one location sample; returns True if the window was rebuilt."""
        previous = self.user_position
        point = sample.point
        self.user_position = point
        self.last_sample = sample
        if previous is not None and previous != point:
            self.heading_deg = bearing_deg(previous, point)

        mapper = self.mapper
        if mapper is None:
            mapper = self._anchor(point)
        else:
            mapper.observe(point)

        local = mapper.geo_to_local(point.latitude, point.longitude)
        return self._update(local)

    def on_local_move(self, local: LocalPoint) -> bool:
        """Handle movement expressed in the local frame (simulated walking).

        Raises:
            GridError: If no location has anchored the local frame yet
        """
        if self.mapper is None:
            raise GridError("Local frame not anchored; feed a location first")
        latitude, longitude = self.mapper.local_to_geo(local.x, local.z)
        self.user_position = GeoPoint(latitude=latitude, longitude=longitude)
        return self._update(local)

    def on_location_unavailable(self, reason: str) -> bool:
        """Fall back to the default location when no fix can be obtained."""
        logger.warning("Location unavailable (%s); using default location", reason)
        return self.on_location(
            LocationSample(
                point=DEFAULT_LOCATION,
                accuracy_m=0.0,
                timestamp=self._clock(),
                source="fallback",
            )
        )

    def start_tracking(self) -> tuple[GridCell, ...]:
        """Anchor the local frame at the current position and rebuild.

        The cache is kept: cells are keyed by geography, not by frame.
        """
        if self.user_position is None:
            self.user_position = DEFAULT_LOCATION
        anchor = self.user_position
        mapper = self._anchor(anchor)
        self._update(
            mapper.geo_to_local(anchor.latitude, anchor.longitude), force=True
        )
        return self._visible

    # ------------------------------------------------------------------
    # Window maintenance
    # ------------------------------------------------------------------
    def _anchor(self, point: GeoPoint) -> CoordinateMapper:
        self.mapper = CoordinateMapper(
            point,
            self.settings.origin_mode,
            degrees_per_km=self.settings.degrees_per_km,
            units_per_km=self.settings.units_per_km,
        )
        self.grid_center = point
        self._grid_frame = CoordinateMapper(
            point,
            OriginMode.FIXED_ANCHOR,
            degrees_per_km=self.settings.degrees_per_km,
            units_per_km=self.settings.units_per_km,
        )
        self._last_update_time = None
        self._last_update_position = None
        logger.info(
            "Local frame anchored at (%.6f, %.6f), mode=%s",
            point.latitude,
            point.longitude,
            self.settings.origin_mode.value,
        )
        return self.mapper

    def _update(self, local: LocalPoint, force: bool = False) -> bool:
        if self._grid_frame is None or self.user_position is None:
            raise GridError("Local frame not anchored; feed a location first")
        self.user_local = local
        tracked = self._grid_frame.geo_to_local(
            self.user_position.latitude, self.user_position.longitude
        )
        now = self._clock()
        # Stateful policies must see every position, forced or not
        decision = self.policy.should_recompute(
            self._last_update_time, self._last_update_position, now, tracked
        )
        if not (force or decision):
            return False

        self.recompute()
        self._last_update_time = now
        self._last_update_position = tracked
        return True

    def recompute(self) -> tuple[GridCell, ...]:
        """Rebuild the visible window now, bypassing the policy."""
        if self.mapper is None or self.grid_center is None or self.user_local is None:
            raise GridError("Local frame not anchored; feed a location first")
        cells = self.cache.compute_visible_cells(
            self.mapper,
            self.user_local,
            grid_center=self.grid_center,
            cell_size_deg=self.settings.cell_size_deg,
            radius=self.settings.visible_radius,
        )
        self._visible = cells
        for sink in self._sinks:
            sink.on_cells(cells)
        return cells

    def placements(self) -> list[tuple[GridCell, LocalPoint]]:
        """Visible cells paired with their local-frame draw positions."""
        if self.mapper is None:
            return []
        return [(cell, self.mapper.place(cell)) for cell in self._visible]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def query_cell(self, latitude: float, longitude: float) -> CellQuery:
        return self.cache.query_cell(latitude, longitude)

    def current_signal(self) -> int | None:
        """Signal strength at the user's feet, or None before the first fix."""
        if self.user_position is None:
            return None
        return signal_strength(
            self.field, self.user_position.latitude, self.user_position.longitude
        )

    def nearest_emitters(self, limit: int = 3) -> tuple[EmitterDistance, ...]:
        if self.user_position is None:
            return ()
        ranked = rank_emitters(
            self.field, self.user_position.latitude, self.user_position.longitude
        )
        return ranked[:limit]

    def emitters_in_view(self, radius_km: float = 3.0) -> tuple[Emitter, ...]:
        """Emitters close enough to the user to show as markers."""
        if self.user_position is None:
            return ()
        return emitters_within(
            self.field,
            self.user_position.latitude,
            self.user_position.longitude,
            radius_km,
            degrees_per_km=self.settings.degrees_per_km,
        )

    def status(self) -> dict[str, Any]:
        """Snapshot for debug overlays."""
        return {
            "mode": self.settings.origin_mode.value,
            "source": self.last_sample.source if self.last_sample else None,
            "user_position": self.user_position,
            "user_local": self.user_local,
            "origin": self.mapper.origin if self.mapper else None,
            "grid_center": self.grid_center,
            "heading_deg": self.heading_deg,
            "signal": self.current_signal(),
            "visible_cells": len(self._visible),
            "cache_size": len(self.cache),
        }
