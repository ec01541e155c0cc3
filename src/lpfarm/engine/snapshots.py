"""Period snapshot store — carry-forward books of per-period opening values.

Instead of keeping a balance history for every period, the farm keeps a
sparse book ``period -> value`` where each entry is the value in effect
when that period began. Periods without an entry carry the value of the
nearest earlier entry forward ("no change" is implicit).

Two writes keep the book exact:
- observe(p, pre): on the first state-changing touch of begun period p,
  record the pre-mutation value unless p already has an entry. Entries of
  begun periods are therefore written once and never again.
- project(p + 1, post): after a mutation in period p, record the
  post-mutation value as the opening value of period p + 1, which has not
  begun yet and may still be overwritten by later mutations in p.

The global book holds eligible liquidity (the denominator of each period's
split); every StakeAccount holds its own book of eligible balances (the
numerator).
"""

from __future__ import annotations

import logging
from typing import Dict, MutableMapping, Optional

from lpfarm.engine.period_clock import PeriodClock
from lpfarm.models.farm import FarmState, StakeAccount

log = logging.getLogger(__name__)


def observe(book: MutableMapping[int, int], period: int, value: int) -> bool:
    """Record ``value`` for ``period`` if absent. Returns True when written."""
    if period in book:
        return False
    book[period] = value
    return True


def project(book: MutableMapping[int, int], period: int, value: int) -> None:
    """Set the opening value of a period that has not begun."""
    book[period] = value


def value_at(book: Dict[int, int], period: int) -> int:
    """Return the carry-forward value for ``period`` (0 before any entry)."""
    best: Optional[int] = None
    for recorded in book:
        if recorded <= period and (best is None or recorded > best):
            best = recorded
    return 0 if best is None else book[best]


class SnapshotStore:
    """Reads and writes the global eligible-liquidity book.

    Usage:
        store = SnapshotStore(period_clock)
        opening = store.checkpoint(state, account)   # before mutating
        ... mutate balance and total ...
        store.carry(state, opening, account)          # after mutating
    """

    def __init__(self, period_clock: PeriodClock) -> None:
        self._clock = period_clock

    def establish(self, state: FarmState) -> None:
        """Set period 0's opening liquidity at funding time."""
        project(state.eligible_liquidity, 0, state.total_staked)

    def checkpoint(
        self,
        state: FarmState,
        account: Optional[StakeAccount] = None,
    ) -> int:
        """Observe the current period with pre-mutation values.

        Returns the period whose opening value a mutation made now will
        determine: the next period once the farm has started, otherwise
        period 0.
        """
        if not self._clock.has_started(state):
            return 0
        period = self._clock.current_period(state)
        if observe(state.eligible_liquidity, period, state.total_staked):
            log.debug(
                "snapshots: recorded period=%d eligible_liquidity=%d",
                period, state.total_staked,
            )
        if account is not None:
            observe(account.eligible_balance, period, account.balance)
        return period + 1

    def carry(
        self,
        state: FarmState,
        opening: int,
        account: Optional[StakeAccount] = None,
    ) -> None:
        """Project post-mutation values onto the opening period."""
        project(state.eligible_liquidity, opening, state.total_staked)
        if account is not None:
            project(account.eligible_balance, opening, account.balance)

    def eligible_liquidity(self, state: FarmState, period: int) -> int:
        """Total staked liquidity in effect when ``period`` began."""
        if period < 0:
            raise ValueError(f"Period index must be >= 0, got {period}")
        return value_at(state.eligible_liquidity, period)

    def recorded_periods(self, state: FarmState) -> list[int]:
        """Periods with an explicit book entry, ascending."""
        return sorted(state.eligible_liquidity)

    @staticmethod
    def eligible_balance(account: StakeAccount, period: int) -> int:
        """Participant balance in effect when ``period`` began."""
        return value_at(account.eligible_balance, period)
