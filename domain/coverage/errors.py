"""Coverage Bounded Context - Error Hierarchy.

Custom exceptions for signal field configuration.
"""

from __future__ import annotations


class CoverageError(Exception):
    """Base error for coverage operations."""


class DuplicateEmitterError(CoverageError):
    """Two emitters in one SignalField share the same id.

    Attributes:
        emitter_id: The repeated identifier
    """

    def __init__(self, emitter_id: str) -> None:
        self.emitter_id = emitter_id
        super().__init__(f"Duplicate emitter id: {emitter_id!r}")
