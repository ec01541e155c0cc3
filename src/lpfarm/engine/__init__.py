"""Period clock, snapshot store and reward accrual."""

from lpfarm.engine.period_clock import BlockClock, ManualClock, PeriodClock
from lpfarm.engine.snapshots import SnapshotStore
from lpfarm.engine.accrual import AccrualEngine

__all__ = [
    "AccrualEngine",
    "BlockClock",
    "ManualClock",
    "PeriodClock",
    "SnapshotStore",
]
