"""Manual/simulated location adapter for LocationProvider.

Accepts a latitude/longitude pair typed into two form fields (or passed as
numbers), validates it, and pushes a LocationSample to subscribers exactly
like a GPS fix. Real device adapters reuse `push()` for pre-built samples.

Validation happens here, at the boundary, so the domain never sees a
non-finite or out-of-range coordinate:
1) Parse text -> float (reject unparseable input)
2) Reject NaN/inf
3) Reject values outside WGS84 range and negative accuracy
4) Stamp a timestamp from the injected clock
5) Notify subscribers synchronously, in subscription order
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable

from domain.grid.errors import InvalidAccuracyError, InvalidCoordinateError
from domain.grid.repositories import LocationCallback
from domain.grid.value_objects import GeoPoint, LocationSample

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)


def _parse_number(raw: float | int | str) -> float:
    if isinstance(raw, bool):
        raise TypeError("bool is not a number")
    if isinstance(raw, str):
        return float(raw.strip())
    return float(raw)


def parse_coordinates(
    latitude: float | int | str, longitude: float | int | str
) -> GeoPoint:
    """Turn raw user input into a validated GeoPoint.

    Raises:
        InvalidCoordinateError: If either value is unparseable, non-finite or
            outside [-90, 90] / [-180, 180]
    """
    try:
        lat = _parse_number(latitude)
        lng = _parse_number(longitude)
    except (TypeError, ValueError) as e:
        raise InvalidCoordinateError(latitude, longitude, "not a number") from e

    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidCoordinateError(latitude, longitude, "non-finite value")
    if not (-90 <= lat <= 90):
        raise InvalidCoordinateError(latitude, longitude, "latitude out of range")
    if not (-180 <= lng <= 180):
        raise InvalidCoordinateError(latitude, longitude, "longitude out of range")
    return GeoPoint(latitude=lat, longitude=lng)


def parse_accuracy(accuracy_m: float | int | str) -> float:
    """Turn a raw accuracy radius into meters.

    Raises:
        InvalidAccuracyError: If the value is unparseable, non-finite or negative
    """
    try:
        value = _parse_number(accuracy_m)
    except (TypeError, ValueError) as e:
        raise InvalidAccuracyError(accuracy_m, "not a number") from e

    if not math.isfinite(value):
        raise InvalidAccuracyError(accuracy_m, "non-finite value")
    if value < 0:
        raise InvalidAccuracyError(accuracy_m, "negative value")
    return value


class SimulatedLocationProvider:
    """LocationProvider fed by manual input instead of a sensor.

    Parameters
    ----------
    clock: Callable[[], float]
        Timestamp source for samples; defaults to time.time.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._subscribers: list[LocationCallback] = []

    def subscribe(self, callback: LocationCallback) -> None:
        self._subscribers.append(callback)

    def submit(
        self,
        latitude: float | int | str,
        longitude: float | int | str,
        accuracy_m: float | int | str = 0.0,
    ) -> LocationSample:
        """Validate a manual entry and deliver it as a simulated sample."""
        try:
            point = parse_coordinates(latitude, longitude)
            accuracy = parse_accuracy(accuracy_m)
        except (InvalidCoordinateError, InvalidAccuracyError) as e:
            logger.warning("Rejected simulated position: %s", e.reason)
            raise

        sample = LocationSample(
            point=point,
            accuracy_m=accuracy,
            timestamp=self._clock(),
            source="simulated",
        )
        self.push(sample)
        return sample

    def push(self, sample: LocationSample) -> None:
        """Deliver an already-validated sample to all subscribers."""
        logger.debug(
            "Location %s: (%.6f, %.6f) accuracy %.1fm",
            sample.source,
            sample.point.latitude,
            sample.point.longitude,
            sample.accuracy_m,
        )
        for callback in self._subscribers:
            callback(sample)
