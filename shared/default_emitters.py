"""Single source of truth for the default emitter set and fallback location.

Used by:
- application.heatmap_session (default SignalField and fallback location)
- scripts/dump_heatmap.py
- tests that need the real-world layout

Eleven synthetic emitters around central Taipei. When adding/removing
emitters, update ONLY this table.
"""

from __future__ import annotations

from domain.coverage.value_objects import Emitter, SignalField
from domain.grid.value_objects import GeoPoint

# (id, latitude, longitude, power, name)
_EMITTER_TABLE: tuple[tuple[str, float, float, float, str], ...] = (
    ("tw-01", 25.0330, 121.5654, 100, "Taipei 101"),
    ("tw-02", 25.0478, 121.5318, 95, "Taipei Main Station"),
    ("tw-03", 25.0855, 121.5606, 90, "Yuanshan"),
    ("tw-04", 24.9968, 121.5417, 95, "Xinyi"),
    ("tw-05", 25.0194, 121.5419, 85, "Da'an"),
    ("tw-06", 25.0100, 121.5300, 100, "Zhongzheng"),
    ("tw-07", 25.0600, 121.5800, 85, "Neihu"),
    ("tw-08", 25.0250, 121.5750, 90, "Nangang"),
    ("tw-09", 25.0050, 121.5550, 95, "Songshan"),
    ("tw-10", 25.0400, 121.5500, 90, "Zhongshan"),
    ("tw-11", 25.0322, 121.5471, 100, "Local"),
)

DEFAULT_EMITTERS: tuple[Emitter, ...] = tuple(
    Emitter(id=eid, latitude=lat, longitude=lng, power=power, name=name)
    for eid, lat, lng, power, name in _EMITTER_TABLE
)

# Position used when no GPS fix is available
DEFAULT_LOCATION = GeoPoint(latitude=25.0330, longitude=121.5654)


def default_signal_field() -> SignalField:
    """SignalField over DEFAULT_EMITTERS with the default falloff radius."""
    return SignalField(emitters=DEFAULT_EMITTERS)
