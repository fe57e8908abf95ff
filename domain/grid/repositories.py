"""Domain Ports for the grid context.

Defines interfaces (Protocols) that location adapters and renderers must
implement. No concrete I/O here.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from .value_objects import GridCell, LocationSample

LocationCallback = Callable[[LocationSample], None]


class LocationProvider(Protocol):
    """Port for a stream of location samples (device GPS or manual entry).

    Implementations must reject non-finite coordinates before notifying
    subscribers.
    """

    def subscribe(self, callback: LocationCallback) -> None:
        """Register a callback invoked synchronously for every sample."""
        ...


class CellSink(Protocol):
    """Port for the rendering collaborator.

    Receives the freshly computed visible window. Cells are shared with the
    cache and must be treated as read-only.
    """

    def on_cells(self, cells: Sequence[GridCell]) -> None: ...
