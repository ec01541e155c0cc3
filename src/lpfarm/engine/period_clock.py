"""Period clock — maps block heights to reward periods.

Periods are fixed-length windows over block heights, starting at the
farm's start block:

    period(h) = floor((h - start) / period_length),  for h >= start

Before the start block the farm reports period 0, but no period has begun
yet (``has_started`` is False). The farm does not run forever: the reported
period is bounded according to the FinalPeriodPolicy.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from lpfarm.errors import NotInitialized
from lpfarm.models.farm import FarmState, FinalPeriodPolicy


@runtime_checkable
class BlockClock(Protocol):
    """Source of the monotonically increasing time counter."""

    def now(self) -> int:
        ...


class ManualClock:
    """Deterministic block clock for tests and simulations.

    Usage:
        clock = ManualClock(height=100)
        clock.mine()            # 101
        clock.advance_to(500)   # 500
    """

    def __init__(self, height: int = 0) -> None:
        if height < 0:
            raise ValueError("Block height must be >= 0")
        self._height = height

    def now(self) -> int:
        return self._height

    def mine(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("Cannot mine a negative number of blocks")
        self._height += blocks
        return self._height

    def advance_to(self, height: int) -> int:
        """Move to ``height``. Moving to the current height is a no-op."""
        if height < self._height:
            raise ValueError(
                f"Block clock cannot move backwards ({self._height} → {height})"
            )
        self._height = height
        return self._height


class PeriodClock:
    """Answers "which period is it" for a farm state.

    The clock itself is stateless; the start block comes from the
    FarmState passed to each call.
    """

    def __init__(
        self,
        clock: BlockClock,
        period_length: int,
        period_count: int,
        policy: FinalPeriodPolicy = FinalPeriodPolicy.CLAMP,
    ) -> None:
        if period_length <= 0:
            raise ValueError("period_length must be positive")
        if period_count <= 0:
            raise ValueError("period_count must be positive")
        self._clock = clock
        self._length = period_length
        self._count = period_count
        self._policy = policy

    @property
    def period_length(self) -> int:
        return self._length

    @property
    def period_count(self) -> int:
        return self._count

    @property
    def policy(self) -> FinalPeriodPolicy:
        return self._policy

    def now(self) -> int:
        return self._clock.now()

    def current_period(self, state: FarmState, now: Optional[int] = None) -> int:
        """Return the current period index.

        Raises:
            NotInitialized: If the farm has no start block.
        """
        start = self._require_start(state)
        if now is None:
            now = self._clock.now()
        if now < start:
            return 0
        elapsed = (now - start) // self._length
        if self._policy == FinalPeriodPolicy.SETTLE:
            return min(self._count, elapsed)
        return min(self._count - 1, elapsed)

    def has_started(self, state: FarmState, now: Optional[int] = None) -> bool:
        """Whether period 0 has begun."""
        start = self._require_start(state)
        if now is None:
            now = self._clock.now()
        return now >= start

    def is_finished(self, state: FarmState, now: Optional[int] = None) -> bool:
        """Whether every period boundary has passed."""
        start = self._require_start(state)
        if now is None:
            now = self._clock.now()
        return now >= start + self._count * self._length

    def period_boundary(self, state: FarmState, index: int) -> int:
        """Return the first block of period ``index``.

        ``index == period_count`` is the block at which the farm ends.
        """
        start = self._require_start(state)
        if not 0 <= index <= self._count:
            raise ValueError(
                f"Period index {index} outside [0, {self._count}]"
            )
        return start + index * self._length

    def distribution_blocks(self, state: FarmState) -> list[int]:
        """Return the start block of every period."""
        return [self.period_boundary(state, i) for i in range(self._count)]

    @staticmethod
    def _require_start(state: FarmState) -> int:
        if state.start_time is None:
            raise NotInitialized("farm has not been funded")
        return state.start_time
