"""Accrual / claim engine — deferred multi-period reward settlement.

Each finalized period p pays a fixed pot, split pro-rata over the stake
that was in place when p began:

    reward(P, p) = weekly_incentive * eligible_balance(P, p) // eligible_liquidity(p)

A participant's claimable amount at current period n with checkpoint c is
the sum of reward(P, p) for c <= p < n. The current period is never
included, which is why a stake cannot be deposited and claimed in the same
period. Division floors per period; dust stays in custody.

Claims are permissionless: anyone may settle on behalf of a participant,
and the reward always goes to the participant.
"""

from __future__ import annotations

import logging
from typing import Optional

from lpfarm.assets.interface import RewardAsset
from lpfarm.engine.period_clock import PeriodClock
from lpfarm.engine.snapshots import SnapshotStore
from lpfarm.errors import NothingToClaim, TooEarlyToClaim
from lpfarm.models.farm import ClaimReceipt, FarmState, PeriodReward

log = logging.getLogger(__name__)


class AccrualEngine:
    """Computes and settles participant rewards.

    Usage:
        engine = AccrualEngine(period_clock, snapshots, reward_asset, custody, weekly)
        engine.incentive_to_be_claimed(state, "0xAlice")
        receipt = engine.claim_for(state, "0xAlice")
    """

    def __init__(
        self,
        period_clock: PeriodClock,
        snapshots: SnapshotStore,
        reward_asset: RewardAsset,
        custody: str,
        weekly_incentive: int,
    ) -> None:
        self._clock = period_clock
        self._snapshots = snapshots
        self._reward = reward_asset
        self._custody = custody
        self._weekly = weekly_incentive

    # ------------------------------------------------------------------
    # Read-only evaluation
    # ------------------------------------------------------------------

    def period_rewards(
        self,
        state: FarmState,
        participant: str,
        current: Optional[int] = None,
    ) -> list[PeriodReward]:
        """Per-period breakdown of the unclaimed reward.

        Only periods where the participant had eligible stake are listed.
        """
        if current is None:
            current = self._clock.current_period(state)
        account = state.peek_account(participant)
        if account is None:
            return []

        rewards: list[PeriodReward] = []
        for period in range(account.last_claimed_period, current):
            balance = self._snapshots.eligible_balance(account, period)
            if balance == 0:
                continue
            liquidity = self._snapshots.eligible_liquidity(state, period)
            reward = state.weekly_incentive * balance // liquidity if liquidity else 0
            rewards.append(PeriodReward(
                period=period,
                eligible_balance=balance,
                eligible_liquidity=liquidity,
                reward=reward,
            ))
        return rewards

    def incentive_to_be_claimed(self, state: FarmState, participant: str) -> int:
        """Unclaimed reward across all finalized periods. Does not mutate."""
        return sum(r.reward for r in self.period_rewards(state, participant))

    def current_farm_incentive(self, state: FarmState, amount: int) -> int:
        """Preview the per-period reward ``amount`` new shares would earn.

        Evaluated against the running total; not part of settlement.
        """
        if amount < 0:
            raise ValueError(f"Amount must be >= 0, got {amount}")
        denominator = state.total_staked + amount
        if denominator == 0:
            return 0
        return self._weekly * amount // denominator

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def claim_for(self, state: FarmState, participant: str) -> ClaimReceipt:
        """Settle and pay ``participant``'s unclaimed reward."""
        receipt = self.settle(state, participant)
        self.pay(receipt)
        return receipt

    def settle(self, state: FarmState, participant: str) -> ClaimReceipt:
        """Effect half of a claim: advance the checkpoint.

        Raises:
            NotInitialized: If the farm has not been funded.
            TooEarlyToClaim: If no period has finalized.
            NothingToClaim: If the computed reward is zero.
        """
        current = self._clock.current_period(state)
        if current == 0:
            raise TooEarlyToClaim(
                "no period has finalized yet",
                details={"participant": participant},
            )
        amount = sum(r.reward for r in self.period_rewards(state, participant, current))
        if amount == 0:
            raise NothingToClaim(
                "no reward accrued since last claim",
                details={"participant": participant, "current_period": current},
            )

        account = state.account(participant)
        self._snapshots.checkpoint(state)
        receipt = ClaimReceipt(
            participant=participant,
            amount=amount,
            from_period=account.last_claimed_period,
            to_period=current,
        )
        account.last_claimed_period = current
        account.claimed_total += amount
        log.info(
            "accrual: claim participant=%s amount=%d periods=[%d,%d)",
            participant, amount, receipt.from_period, receipt.to_period,
        )
        return receipt

    def pay(self, receipt: ClaimReceipt) -> None:
        """Interaction half of a claim."""
        self._reward.transfer(self._custody, receipt.participant, receipt.amount)
