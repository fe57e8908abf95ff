"""Coverage Bounded Context - Value Objects.

Immutable configuration of the synthetic signal field.
All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.coverage.errors import DuplicateEmitterError

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
DEFAULT_MAX_DISTANCE_DEG = 0.02  # Emitter reach in planar degrees (~2.2 km)
MIN_SIGNAL = 0
MAX_SIGNAL = 100


class Emitter(BaseModel):
    """Synthetic signal source at a fixed position (Value Object).

    Invariants:
        EM-1: power in [0, 100]
        EM-2: id is non-empty

    Coordinates are not range-checked: the field model accepts any
    latitude/longitude pair and far-away emitters simply contribute 0.
    """

    id: str = Field(min_length=1)
    latitude: float
    longitude: float
    power: float = Field(ge=MIN_SIGNAL, le=MAX_SIGNAL)
    name: str | None = None

    model_config = ConfigDict(frozen=True)


class SignalField(BaseModel):
    """Fixed set of emitters plus falloff radius (Value Object).

    Passed explicitly to every field computation; there is no process-wide
    emitter registry.
    """

    emitters: tuple[Emitter, ...]
    max_distance_deg: float = Field(default=DEFAULT_MAX_DISTANCE_DEG, gt=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "SignalField":
        seen: set[str] = set()
        for emitter in self.emitters:
            if emitter.id in seen:
                raise DuplicateEmitterError(emitter.id)
            seen.add(emitter.id)
        return self

    def get(self, emitter_id: str) -> Emitter | None:
        """Return the emitter with the given id, or None."""
        for emitter in self.emitters:
            if emitter.id == emitter_id:
                return emitter
        return None

    def __len__(self) -> int:
        return len(self.emitters)


class EmitterDistance(BaseModel):
    """Distance from a query point to one emitter (Value Object).

    distance_deg is the planar degree distance used by the field model;
    distance_m is the WGS84 geodesic distance for display.
    """

    emitter: Emitter
    distance_deg: float = Field(ge=0)
    distance_m: float = Field(ge=0)

    model_config = ConfigDict(frozen=True)
