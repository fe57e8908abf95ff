"""Tests for HeatmapSession: the location -> cache -> renderer loop."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pytest

from application import HeatmapSession, HeatmapSettings
from domain.coverage.value_objects import SignalField
from domain.grid.errors import GridError
from domain.grid.policies import AlwaysRecompute, MinIntervalPolicy
from domain.grid.value_objects import GeoPoint, GridCell, LocalPoint, LocationSample
from infrastructure.location import SimulatedLocationProvider
from shared.default_emitters import DEFAULT_LOCATION

START = GeoPoint(latitude=25.0330, longitude=121.5654)


class RecordingSink:
    def __init__(self) -> None:
        self.windows: list[Sequence[GridCell]] = []

    def on_cells(self, cells: Sequence[GridCell]) -> None:
        self.windows.append(cells)


def sample(lat: float, lng: float, source: str = "gps") -> LocationSample:
    return LocationSample(
        point=GeoPoint(latitude=lat, longitude=lng), timestamp=0.0, source=source
    )


@pytest.fixture
def settings() -> HeatmapSettings:
    return HeatmapSettings.for_profile("mobile")


@pytest.fixture
def session(settings, clock) -> HeatmapSession:
    return HeatmapSession(settings, policy=AlwaysRecompute(), clock=clock)


# ===========================================================================
# First fix
# ===========================================================================
def test_first_location_anchors_and_builds_window(session, settings):
    sink = RecordingSink()
    session.add_sink(sink)

    rebuilt = session.on_location(sample(START.latitude, START.longitude))

    assert rebuilt is True
    assert session.is_anchored
    assert session.grid_center == START
    assert session.mapper is not None and session.mapper.origin == START
    assert len(session.visible_cells) == settings.window_size == 49
    assert sink.windows == [session.visible_cells]
    assert len(session.cache) == 49


def test_attach_to_provider(session):
    provider = SimulatedLocationProvider()
    session.attach(provider)
    provider.submit("25.0330", "121.5654")

    assert session.last_sample is not None
    assert session.last_sample.source == "simulated"
    assert len(session.visible_cells) == 49


def test_visible_cells_are_cache_entries(session):
    session.on_location(sample(START.latitude, START.longitude))
    for cell in session.visible_cells:
        assert session.query_cell(cell.latitude, cell.longitude).cell is cell


# ===========================================================================
# Origin modes
# ===========================================================================
def test_fixed_anchor_keeps_origin_and_moves_user(session):
    session.on_location(sample(START.latitude, START.longitude))
    session.on_location(sample(START.latitude + 0.009, START.longitude))

    assert session.mapper.origin == START
    assert session.user_local.z == pytest.approx(-100.0, abs=1e-6)
    center = session.visible_cells[len(session.visible_cells) // 2]
    assert center.latitude == pytest.approx(START.latitude + 0.009, abs=1e-7)


def test_user_following_recenters_origin(clock):
    following = HeatmapSettings.for_profile("mobile", origin_mode="user_following")
    session = HeatmapSession(following, policy=AlwaysRecompute(), clock=clock)
    moved = GeoPoint(latitude=START.latitude + 0.009, longitude=START.longitude)

    session.on_location(sample(START.latitude, START.longitude))
    session.on_location(sample(moved.latitude, moved.longitude))

    assert session.mapper.origin == moved
    assert (session.user_local.x, session.user_local.z) == (0.0, 0.0)
    assert session.grid_center == START
    center = session.visible_cells[len(session.visible_cells) // 2]
    assert center.latitude == pytest.approx(moved.latitude, abs=1e-7)


# ===========================================================================
# Throttling
# ===========================================================================
def test_policy_throttles_rebuilds(settings, clock):
    sink = RecordingSink()
    session = HeatmapSession(settings, policy=MinIntervalPolicy(1.0), clock=clock)
    session.add_sink(sink)

    assert session.on_location(sample(START.latitude, START.longitude)) is True
    first = session.visible_cells

    clock.advance(0.5)
    assert session.on_location(sample(START.latitude + 0.005, START.longitude)) is False
    assert session.visible_cells is first
    assert session.user_position.latitude == pytest.approx(START.latitude + 0.005)

    clock.advance(0.5)
    assert session.on_location(sample(START.latitude + 0.005, START.longitude)) is True
    assert len(sink.windows) == 2


def test_default_policy_rebuilds_after_walking(settings, clock):
    session = HeatmapSession(settings, clock=clock)
    session.on_location(sample(START.latitude, START.longitude))

    # 0.0001 deg ~ 1.1 local units: below the 3-unit walking threshold
    assert session.on_location(sample(START.latitude + 0.0001, START.longitude)) is False
    assert session.on_location(sample(START.latitude + 0.0004, START.longitude)) is True


def test_interval_rebuild_does_not_leave_walked_distance_pending(settings, clock):
    session = HeatmapSession(settings, clock=clock)
    unit = settings.degrees_per_km / settings.units_per_km  # deg per local unit
    session.on_location(sample(START.latitude, START.longitude))

    clock.advance(0.1)
    assert session.on_location(sample(START.latitude, START.longitude + 2.5 * unit)) is False
    clock.advance(0.3)
    assert session.on_location(sample(START.latitude, START.longitude + 2.6 * unit)) is True
    clock.advance(0.05)
    assert session.on_location(sample(START.latitude, START.longitude + 3.0 * unit)) is False


def test_rapid_duplicate_samples_keep_cache_stable(session):
    for _ in range(5):
        session.on_location(sample(START.latitude, START.longitude))
    assert len(session.cache) == 49


# ===========================================================================
# Local movement
# ===========================================================================
def test_local_move_before_anchor_rejected(session):
    with pytest.raises(GridError):
        session.on_local_move(LocalPoint(x=1.0, z=0.0))


def test_recompute_before_anchor_rejected(session):
    with pytest.raises(GridError):
        session.recompute()


def test_local_move_updates_user_position(session):
    session.on_location(sample(START.latitude, START.longitude))
    session.on_local_move(LocalPoint(x=100.0, z=0.0))  # 1 km east

    assert session.user_position.longitude == pytest.approx(START.longitude + 0.009)
    center = session.visible_cells[len(session.visible_cells) // 2]
    assert center.longitude == pytest.approx(START.longitude + 0.009, abs=1e-7)


# ===========================================================================
# Fallback & tracking
# ===========================================================================
def test_location_unavailable_falls_back(session, clock, caplog):
    with caplog.at_level(logging.WARNING):
        session.on_location_unavailable("permission denied")

    assert session.user_position == DEFAULT_LOCATION
    assert session.last_sample.source == "fallback"
    assert session.last_sample.accuracy_m == 0.0
    assert session.last_sample.timestamp == clock()
    assert len(session.visible_cells) == 49
    assert "permission denied" in caplog.text


def test_start_tracking_reanchors_and_keeps_cache(session):
    session.on_location(sample(START.latitude, START.longitude))
    session.on_location(sample(START.latitude + 0.01, START.longitude + 0.01))
    size = len(session.cache)

    cells = session.start_tracking()

    here = GeoPoint(latitude=START.latitude + 0.01, longitude=START.longitude + 0.01)
    assert session.grid_center == here
    assert session.mapper.origin == here
    assert (session.user_local.x, session.user_local.z) == (0.0, 0.0)
    assert len(cells) == 49
    assert len(session.cache) >= size


def test_start_tracking_without_fix_uses_default(session):
    session.start_tracking()
    assert session.grid_center == DEFAULT_LOCATION


# ===========================================================================
# Queries
# ===========================================================================
def test_revisited_location_returns_identical_cells(session):
    session.on_location(sample(START.latitude, START.longitude))
    first = session.visible_cells
    session.on_location(sample(START.latitude + 0.02, START.longitude))
    session.on_location(sample(START.latitude, START.longitude))

    assert all(a is b for a, b in zip(first, session.visible_cells))


def test_heading_from_consecutive_fixes(session):
    session.on_location(sample(START.latitude, START.longitude))
    assert session.heading_deg is None

    session.on_location(sample(START.latitude + 0.001, START.longitude))
    assert session.heading_deg == pytest.approx(0.0, abs=0.5)

    session.on_location(sample(START.latitude + 0.001, START.longitude + 0.001))
    assert session.heading_deg == pytest.approx(90.0, abs=0.5)


def test_current_signal_and_nearest_emitters(session):
    assert session.current_signal() is None
    assert session.nearest_emitters() == ()

    session.on_location(sample(START.latitude, START.longitude))

    assert 0 <= session.current_signal() <= 100
    nearest = session.nearest_emitters(limit=3)
    assert len(nearest) == 3
    assert nearest[0].emitter.name == "Taipei 101"
    assert [e.distance_deg for e in nearest] == sorted(e.distance_deg for e in nearest)


def test_placements_match_mapper(session):
    assert session.placements() == []
    session.on_location(sample(START.latitude, START.longitude))

    placed = session.placements()
    assert len(placed) == 49
    cell, local = placed[len(placed) // 2]
    assert cell.latitude == pytest.approx(START.latitude)
    assert local.x == pytest.approx(0.0, abs=1e-6)
    assert local.z == pytest.approx(0.0, abs=1e-6)


def test_status_snapshot(session):
    session.on_location(sample(START.latitude, START.longitude))
    status = session.status()

    assert status["mode"] == "fixed_anchor"
    assert status["source"] == "gps"
    assert status["visible_cells"] == 49
    assert status["cache_size"] == 49
    assert status["grid_center"] == START


def test_emitters_in_view(session):
    assert session.emitters_in_view() == ()
    session.on_location(sample(START.latitude, START.longitude))

    ids = {emitter.id for emitter in session.emitters_in_view(radius_km=3)}
    assert ids == {"tw-01", "tw-08", "tw-10", "tw-11"}


def test_custom_field_is_used_even_when_empty(settings, clock):
    session = HeatmapSession(
        settings, field=SignalField(emitters=()), policy=AlwaysRecompute(), clock=clock
    )
    session.on_location(sample(START.latitude, START.longitude))

    assert len(session.field) == 0
    assert {cell.signal_value for cell in session.visible_cells} == {0}
