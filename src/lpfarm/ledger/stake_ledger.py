"""Stake ledger — deposits and withdrawals of pool shares.

The ledger keeps each participant's staked balance and the running total,
and keeps both snapshot books current so that a balance only becomes
eligible for rewards from the period after it was staked.

Every operation is split into an effect half (ledger state, snapshot
books) and an interaction half (asset transfers). Effects always run
first, so an asset that calls back into the farm sees finished state:

    deposit  = credit  → transfer_from
    withdraw = debit   → transfer
    deposit_with_authorization = authorize → credit → permit → transfer_from

Withdrawals never touch pending rewards; claiming is a separate operation.
"""

from __future__ import annotations

import logging

from lpfarm.assets.interface import PoolShareAsset
from lpfarm.crypto.permit import verify_permit
from lpfarm.engine.period_clock import PeriodClock
from lpfarm.engine.snapshots import SnapshotStore
from lpfarm.errors import InsufficientStake, InvalidAmount, NotInitialized
from lpfarm.models.farm import FarmState, StakeAccount
from lpfarm.models.permit import AuthorizedDepositPermit, PermitSignature

log = logging.getLogger(__name__)


class StakeLedger:
    """Applies stake mutations to a FarmState.

    Usage:
        ledger = StakeLedger(period_clock, snapshots, pool_asset, custody="0xFarm")
        ledger.deposit(state, "0xAlice", 100)
        ledger.withdraw(state, "0xAlice", 40)
    """

    def __init__(
        self,
        period_clock: PeriodClock,
        snapshots: SnapshotStore,
        pool_asset: PoolShareAsset,
        custody: str,
        replay_lookback: int = 32,
    ) -> None:
        self._clock = period_clock
        self._snapshots = snapshots
        self._pool = pool_asset
        self._custody = custody
        self._replay_lookback = replay_lookback

    @property
    def custody(self) -> str:
        return self._custody

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    def deposit(self, state: FarmState, participant: str, amount: int) -> int:
        """Stake ``amount`` pool shares using an existing allowance.

        Returns:
            The participant's new staked balance.
        """
        self.credit(state, participant, amount)
        self._pool.transfer_from(self._custody, participant, self._custody, amount)
        return self.stake_of(state, participant)

    def deposit_with_authorization(
        self,
        state: FarmState,
        owner: str,
        amount: int,
        deadline: int,
        signature: PermitSignature,
    ) -> int:
        """Stake ``amount`` pool shares authorized by a signed permit.

        The permit is checked before any state changes; the asset consumes
        it only after the ledger has been updated.

        Raises:
            AuthorizationExpired: If the deadline has passed.
            NonceMismatch: If the permit was already used.
            InvalidAuthorization: If the signature is not the owner's.
        """
        self.authorize(owner, amount, deadline, signature)
        self.credit(state, owner, amount)
        self._pool.permit(
            owner, self._custody, amount, deadline,
            signature.v, signature.r, signature.s,
        )
        self._pool.transfer_from(self._custody, owner, self._custody, amount)
        return self.stake_of(state, owner)

    def authorize(
        self,
        owner: str,
        amount: int,
        deadline: int,
        signature: PermitSignature,
    ) -> AuthorizedDepositPermit:
        """Verify a permit granting the farm ``amount`` of ``owner``'s shares."""
        permit = AuthorizedDepositPermit(
            owner=owner,
            spender=self._custody,
            value=amount,
            nonce=self._pool.nonces(owner),
            deadline=deadline,
        )
        verify_permit(
            self._pool.permit_domain(),
            permit,
            signature,
            now=self._clock.now(),
            replay_lookback=self._replay_lookback,
        )
        return permit

    def credit(self, state: FarmState, participant: str, amount: int) -> StakeAccount:
        """Effect half of a deposit."""
        if amount <= 0:
            raise InvalidAmount("cannot stake a non-positive amount", details={"amount": amount})
        if not state.initialized:
            raise NotInitialized("farm has not been funded")
        account = state.account(participant)
        opening = self._snapshots.checkpoint(state, account)
        account.balance += amount
        state.total_staked += amount
        self._snapshots.carry(state, opening, account)
        log.info(
            "ledger: deposit participant=%s amount=%d balance=%d total=%d eligible_from=%d",
            participant, amount, account.balance, state.total_staked, opening,
        )
        return account

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    def withdraw(self, state: FarmState, participant: str, amount: int) -> int:
        """Unstake ``amount`` pool shares and return them to the participant.

        Returns:
            The participant's remaining staked balance.
        """
        self.debit(state, participant, amount)
        self.release(participant, amount)
        return self.stake_of(state, participant)

    def debit(self, state: FarmState, participant: str, amount: int) -> StakeAccount:
        """Effect half of a withdrawal."""
        if amount <= 0:
            raise InvalidAmount("cannot unstake a non-positive amount", details={"amount": amount})
        account = state.peek_account(participant)
        staked = account.balance if account is not None else 0
        if account is None or amount > staked:
            raise InsufficientStake(requested=amount, staked=staked, participant=participant)
        opening = self._snapshots.checkpoint(state, account)
        account.balance -= amount
        state.total_staked -= amount
        self._snapshots.carry(state, opening, account)
        log.info(
            "ledger: withdrawal participant=%s amount=%d balance=%d total=%d",
            participant, amount, account.balance, state.total_staked,
        )
        return account

    def release(self, participant: str, amount: int) -> None:
        """Interaction half of a withdrawal."""
        self._pool.transfer(self._custody, participant, amount)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def stake_of(state: FarmState, participant: str) -> int:
        account = state.peek_account(participant)
        return account.balance if account is not None else 0
