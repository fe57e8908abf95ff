"""Session configuration.

Frozen pydantic model validated at construction, with the two device
profiles the heatmap ships with.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from domain.coverage.value_objects import DEFAULT_MAX_DISTANCE_DEG
from domain.grid.policies import (
    AccumulatedDistancePolicy,
    AnyOf,
    MinIntervalPolicy,
    RecomputePolicy,
)
from domain.grid.services import (
    DEFAULT_DEGREES_PER_KM,
    DEFAULT_UNITS_PER_KM,
    MIN_CELL_SIZE_DEG,
)
from domain.grid.value_objects import OriginMode

Profile = Literal["mobile", "desktop"]

# profile -> (cell_size_deg, visible_radius)
_PROFILES: dict[str, tuple[float, int]] = {
    "mobile": (0.0010, 3),  # ~100 m cells, 7x7 window
    "desktop": (0.0005, 4),  # ~50 m cells, 9x9 window
}


class HeatmapSettings(BaseModel):
    """Grid, mapping and throttling parameters for one HeatmapSession."""

    cell_size_deg: float = Field(default=0.0005, ge=MIN_CELL_SIZE_DEG)
    visible_radius: int = Field(default=4, ge=0, le=50)
    degrees_per_km: float = Field(default=DEFAULT_DEGREES_PER_KM, gt=0)
    units_per_km: float = Field(default=DEFAULT_UNITS_PER_KM, gt=0)
    max_distance_deg: float = Field(default=DEFAULT_MAX_DISTANCE_DEG, gt=0)
    origin_mode: OriginMode = OriginMode.FIXED_ANCHOR
    min_update_interval_s: float = Field(default=0.3, ge=0)
    recompute_distance: float = Field(default=3.0, ge=0)  # local units

    model_config = ConfigDict(frozen=True)

    @classmethod
    def for_profile(cls, profile: Profile, **overrides: object) -> "HeatmapSettings":
        """Settings for a device class, with optional field overrides."""
        try:
            cell_size, radius = _PROFILES[profile]
        except KeyError:
            raise ValueError(
                f"Unknown profile {profile!r}; expected one of {sorted(_PROFILES)}"
            ) from None
        values: dict[str, object] = {
            "cell_size_deg": cell_size,
            "visible_radius": radius,
        }
        values.update(overrides)
        return cls.model_validate(values)

    @property
    def window_size(self) -> int:
        """Number of cells in one visible window."""
        return (2 * self.visible_radius + 1) ** 2

    def build_policy(self) -> RecomputePolicy:
        """Default throttle: enough walking, or enough time since last update."""
        return AnyOf(
            AccumulatedDistancePolicy(self.recompute_distance),
            MinIntervalPolicy(self.min_update_interval_s),
        )
