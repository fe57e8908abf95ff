"""Grid Bounded Context - Error Hierarchy.

Custom exceptions for cache keys, coordinate mapping and grid settings.
"""

from __future__ import annotations


class GridError(Exception):
    """Base error for grid operations."""


class InvalidCoordinateError(GridError):
    """Coordinate is non-finite, unparseable or outside WGS84 range.

    Raised at the boundary so that a NaN cell never reaches the cache.

    Attributes:
        latitude: The offending latitude (as received)
        longitude: The offending longitude (as received)
    """

    def __init__(self, latitude: object, longitude: object, reason: str = "") -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.reason = reason
        message = f"Invalid coordinate ({latitude!r}, {longitude!r})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidGridSettingsError(GridError):
    """Grid window parameters are invalid (cell size, radius, scale)."""


class InvalidAccuracyError(GridError):
    """Reported fix accuracy is unparseable, non-finite or negative.

    Attributes:
        accuracy_m: The offending accuracy (as received)
    """

    def __init__(self, accuracy_m: object, reason: str = "") -> None:
        self.accuracy_m = accuracy_m
        self.reason = reason
        message = f"Invalid accuracy {accuracy_m!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
