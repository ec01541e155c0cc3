"""Farm ledger models — global state, stake accounts, claim receipts.

All amounts are integer base units. No floats in finance.

Ledger invariants carried by these models:
- total_staked == sum(account.balance for account in accounts)
- account.last_claimed_period never decreases
- a snapshot book entry for a period that has begun is never rewritten
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Optional


class FinalPeriodPolicy(str, enum.Enum):
    """What the period clock reports once every period has elapsed.

    CLAMP:  the clock stays on the last period, so the last period never
            finalizes and its pot is never paid out.
    SETTLE: the clock moves to ``period_count`` after the last boundary,
            so the last period finalizes; no further periods accrue.
    """
    CLAMP = "clamp"
    SETTLE = "settle"


class StakeStatus(str, enum.Enum):
    """Lifecycle of a single stake account.

    State machine:
        UNSTAKED → STAKED     (first deposit)
        STAKED → STAKED       (deposits / partial withdrawals)
        STAKED → UNSTAKED     (balance reaches 0)
    """
    UNSTAKED = "unstaked"
    STAKED = "staked"


@dataclass
class StakeAccount:
    """Per-participant stake record.

    ``eligible_balance`` is a sparse carry-forward book: the balance that
    was in effect when each recorded period began.
    """
    participant: str
    balance: int = 0
    last_claimed_period: int = 0
    claimed_total: int = 0
    eligible_balance: Dict[int, int] = field(default_factory=dict)

    @property
    def status(self) -> StakeStatus:
        return StakeStatus.STAKED if self.balance > 0 else StakeStatus.UNSTAKED


@dataclass
class FarmState:
    """Mutable ledger context passed to every farm operation.

    Created empty when the farm is constructed. ``start_time`` stays None
    until the funding guard fires.
    """
    start_time: Optional[int] = None
    total_staked: int = 0
    weekly_incentive: int = 0
    eligible_liquidity: Dict[int, int] = field(default_factory=dict)
    accounts: Dict[str, StakeAccount] = field(default_factory=dict)

    @property
    def initialized(self) -> bool:
        return self.start_time is not None

    def account(self, participant: str) -> StakeAccount:
        """Return the participant's account, creating it on first use.

        Accounts are keyed case-insensitively, the way addresses are
        compared everywhere else, so a hex address in any casing finds the
        same account. The account keeps the spelling it was opened with.
        """
        key = participant.lower()
        record = self.accounts.get(key)
        if record is None:
            record = StakeAccount(participant=participant)
            self.accounts[key] = record
        return record

    def peek_account(self, participant: str) -> Optional[StakeAccount]:
        """Return the participant's account without creating one."""
        return self.accounts.get(participant.lower())


@dataclass(frozen=True)
class PeriodReward:
    """One period's contribution to a participant's claimable amount."""
    period: int
    eligible_balance: int
    eligible_liquidity: int
    reward: int


@dataclass(frozen=True)
class ClaimReceipt:
    """Result of a settled claim."""
    participant: str
    amount: int
    from_period: int
    to_period: int  # exclusive; the new checkpoint
