"""Root pytest configuration for all tests.

Provides small hand-built signal fields so domain tests do not depend on
the shared Taipei emitter table unless they ask for it.
"""

from __future__ import annotations

import pytest

from domain.coverage.value_objects import Emitter, SignalField
from domain.grid.services import CoordinateMapper, GridCache
from domain.grid.value_objects import GeoPoint, OriginMode
from shared.default_emitters import default_signal_field


@pytest.fixture
def single_emitter_field() -> SignalField:
    """One power-100 emitter at Taipei 101, 0.02 deg reach."""
    return SignalField(
        emitters=(
            Emitter(id="t101", latitude=25.0330, longitude=121.5654, power=100),
        ),
        max_distance_deg=0.02,
    )


@pytest.fixture
def default_field() -> SignalField:
    return default_signal_field()


@pytest.fixture
def cache(default_field: SignalField) -> GridCache:
    return GridCache(default_field)


@pytest.fixture
def origin() -> GeoPoint:
    return GeoPoint(latitude=25.0, longitude=121.5)


@pytest.fixture
def fixed_mapper(origin: GeoPoint) -> CoordinateMapper:
    """Fixed-anchor mapper with 0.009 deg/km and 100 units/km."""
    return CoordinateMapper(
        origin, OriginMode.FIXED_ANCHOR, degrees_per_km=0.009, units_per_km=100
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
