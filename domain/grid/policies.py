"""Grid Bounded Context - Recompute Policies.

Strategies deciding when the update loop should rebuild the visible window.
They only throttle the renderer's workload; the cache stays consistent
whether or not a recompute happens.
"""

from __future__ import annotations

from typing import Protocol

from domain.grid.errors import InvalidGridSettingsError
from domain.grid.value_objects import LocalPoint


class RecomputePolicy(Protocol):
    """Port for throttling visible-window recomputation.

    last_update_time and last_position are None until the first recompute,
    in which case every policy answers True.
    """

    def should_recompute(
        self,
        last_update_time: float | None,
        last_position: LocalPoint | None,
        now: float,
        current_position: LocalPoint,
    ) -> bool: ...


class AlwaysRecompute:
    """Recompute on every update."""

    def should_recompute(
        self,
        last_update_time: float | None,
        last_position: LocalPoint | None,
        now: float,
        current_position: LocalPoint,
    ) -> bool:
        return True


class MinIntervalPolicy:
    """Recompute at most once per min_interval_s seconds of wall-clock time."""

    def __init__(self, min_interval_s: float = 0.3) -> None:
        if min_interval_s < 0:
            raise InvalidGridSettingsError(
                f"min_interval_s must be >= 0, got {min_interval_s}"
            )
        self.min_interval_s = min_interval_s

    def should_recompute(
        self,
        last_update_time: float | None,
        last_position: LocalPoint | None,
        now: float,
        current_position: LocalPoint,
    ) -> bool:
        if last_update_time is None:
            return True
        return now - last_update_time >= self.min_interval_s


class AccumulatedDistancePolicy:
    """Recompute once the user has walked `threshold` local units in total.

    Movement is summed between consecutive observed positions, so pacing
    back and forth counts too. The counter resets after every recompute,
    including ones triggered by another policy (seen as a change in the
    last-update arguments).
    """

    def __init__(self, threshold: float = 3.0) -> None:
        if threshold < 0:
            raise InvalidGridSettingsError(f"threshold must be >= 0, got {threshold}")
        self.threshold = threshold
        self.accumulated = 0.0
        self._previous: LocalPoint | None = None
        self._last_update: tuple[float | None, LocalPoint] | None = None

    def should_recompute(
        self,
        last_update_time: float | None,
        last_position: LocalPoint | None,
        now: float,
        current_position: LocalPoint,
    ) -> bool:
        previous = self._previous if self._previous is not None else last_position
        self._previous = current_position
        if last_position is None:
            self.accumulated = 0.0
            self._last_update = None
            return True

        update = (last_update_time, last_position)
        if update != self._last_update:
            self._last_update = update
            self.accumulated = 0.0
        if previous is not None:
            self.accumulated += previous.distance_to(current_position)
        if self.accumulated >= self.threshold:
            self.accumulated = 0.0
            return True
        return False


class AnyOf:
    """Recompute when any wrapped policy says so.

    Every policy is consulted on each call so stateful ones keep counting.
    """

    def __init__(self, *policies: RecomputePolicy) -> None:
        if not policies:
            raise InvalidGridSettingsError("AnyOf needs at least one policy")
        self.policies = policies

    def should_recompute(
        self,
        last_update_time: float | None,
        last_position: LocalPoint | None,
        now: float,
        current_position: LocalPoint,
    ) -> bool:
        decisions = [
            policy.should_recompute(
                last_update_time, last_position, now, current_position
            )
            for policy in self.policies
        ]
        return any(decisions)
