"""Farm service — the external surface of a liquidity incentive farm.

This is the primary interface for programmatic access to a farm. It binds
the components to one FarmState and one custody address:
- Funding (reward asset receive hook → InitializationGuard)
- Staking (open_farm, open_farm_with_permit, close_farm → StakeLedger)
- Rewards (claim_for, claim_and_close → AccrualEngine)
- Queries (periods, snapshots, pending rewards)
- Audit (EventLog)

Every mutating call is all-or-nothing: the ledger state is copied before
the call and restored if anything raises, and the call's events reach the
log only when it succeeds. Within a call, every ledger effect happens
before any asset transfer, so an asset that calls back into the farm sees
finished state.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from lpfarm.assets.interface import PoolShareAsset, RewardAsset
from lpfarm.config import FarmConfig
from lpfarm.engine.accrual import AccrualEngine
from lpfarm.engine.period_clock import BlockClock, PeriodClock
from lpfarm.engine.snapshots import SnapshotStore
from lpfarm.funding.guard import InitializationGuard
from lpfarm.ledger.stake_ledger import StakeLedger
from lpfarm.models.farm import ClaimReceipt, FarmState, PeriodReward
from lpfarm.models.permit import PermitSignature
from lpfarm.persistence.event_log import EventKind, EventLog, EventRecord

log = logging.getLogger(__name__)


class FarmService:
    """Liquidity farm facade.

    Usage:
        config = FarmConfig.from_config_dir(config_dir)
        farm = FarmService(config, pool_token, reward_token, clock, "0xFarm")

        # Funding arrives through the reward asset's receive hook
        reward_token.send(dao, "0xFarm", config.total_funding, encode_start_block(start))

        # Staking
        pool_token.approve("0xAlice", "0xFarm", 100)
        farm.open_farm("0xAlice", 100)

        # After at least one period has finalized
        farm.claim_for("0xRelayer", "0xAlice")
        farm.claim_and_close("0xAlice")
    """

    def __init__(
        self,
        config: FarmConfig,
        pool_asset: PoolShareAsset,
        reward_asset: RewardAsset,
        clock: BlockClock,
        address: str,
        event_log: Optional[EventLog] = None,
    ) -> None:
        self._config = config
        self._pool = pool_asset
        self._reward = reward_asset
        self._address = address
        self._state = FarmState()
        self._event_log = event_log if event_log is not None else EventLog()

        self._period_clock = PeriodClock(
            clock,
            config.period_length,
            config.period_count,
            config.final_period_policy,
        )
        self._snapshots = SnapshotStore(self._period_clock)
        self._ledger = StakeLedger(
            self._period_clock,
            self._snapshots,
            pool_asset,
            custody=address,
            replay_lookback=config.replay_lookback,
        )
        self._accrual = AccrualEngine(
            self._period_clock,
            self._snapshots,
            reward_asset,
            custody=address,
            weekly_incentive=config.weekly_incentive,
        )
        self._guard = InitializationGuard(config, reward_asset.address, self._snapshots)

        # Events of the call in progress; None outside a call.
        self._pending: Optional[list[EventRecord]] = None
        self._event_seq = 0

        register = getattr(reward_asset, "register_recipient", None)
        if register is not None:
            register(address, self.tokens_received)

    @property
    def address(self) -> str:
        return self._address

    @property
    def config(self) -> FarmConfig:
        return self._config

    @property
    def state(self) -> FarmState:
        return self._state

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def WEEKLY_INCENTIVE(self) -> int:
        return self._config.weekly_incentive

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    def tokens_received(
        self,
        token: Any,
        operator: str,
        sender: str,
        recipient: str,
        amount: int,
        user_data: bytes,
        operator_data: bytes = b"",
    ) -> int:
        """Reward asset receive hook. Initializes the farm.

        ``token`` is the notifying asset or its address. Returns the start
        block.
        """
        token_address = getattr(token, "address", token)
        with self._transaction("fund"):
            start = self._guard.accept_funding(
                self._state,
                token_address,
                sender,
                amount,
                user_data,
                self._period_clock.now(),
            )
            self._emit(EventKind.FARM_INITIALIZED, sender, {
                "operator": operator,
                "start_block": start,
                "weekly_incentive": self._state.weekly_incentive,
                "total_funding": amount,
            })
            return start

    # ------------------------------------------------------------------
    # Staking
    # ------------------------------------------------------------------

    def open_farm(self, caller: str, amount: int) -> int:
        """Stake ``amount`` of the caller's pool shares (allowance required).

        Returns the caller's new staked balance.
        """
        with self._transaction("open_farm"):
            balance = self._ledger.deposit(self._state, caller, amount)
            self._emit(EventKind.TOKEN_ADDED, caller, {
                "amount": amount,
                "balance": balance,
                "total_staked": self._state.total_staked,
            })
            return balance

    def open_farm_with_permit(
        self,
        caller: str,
        amount: int,
        owner: str,
        deadline: int,
        v: int,
        r: int | bytes,
        s: int | bytes,
    ) -> int:
        """Stake ``owner``'s shares under a signed permit.

        Anyone may submit the permit; the stake is credited to ``owner``.
        Returns the owner's new staked balance.
        """
        with self._transaction("open_farm_with_permit"):
            balance = self._ledger.deposit_with_authorization(
                self._state, owner, amount, deadline, PermitSignature(v=v, r=r, s=s),
            )
            self._emit(EventKind.TOKEN_ADDED, owner, {
                "amount": amount,
                "balance": balance,
                "total_staked": self._state.total_staked,
                "submitted_by": caller,
            })
            return balance

    def close_farm(self, caller: str, amount: int) -> int:
        """Unstake ``amount`` of the caller's shares. Pending rewards stay claimable.

        Returns the caller's remaining staked balance.
        """
        with self._transaction("close_farm"):
            balance = self._ledger.withdraw(self._state, caller, amount)
            self._emit(EventKind.TOKEN_REMOVED, caller, {
                "amount": amount,
                "balance": balance,
                "total_staked": self._state.total_staked,
            })
            return balance

    # ------------------------------------------------------------------
    # Rewards
    # ------------------------------------------------------------------

    def claim_for(self, caller: str, participant: str) -> int:
        """Pay ``participant``'s unclaimed reward. Callable by anyone.

        Returns the amount paid.
        """
        with self._transaction("claim_for"):
            receipt = self._accrual.claim_for(self._state, participant)
            self._emit_claim(caller, receipt)
            return receipt.amount

    def claim_and_close(self, caller: str) -> tuple[int, int]:
        """Claim the caller's reward and unstake their whole balance.

        Returns ``(reward, unstaked)``. When nothing is staked only the
        claim runs.

        The pool shares go back before the reward is paid, so the reward
        transfer is the only interaction that can fail after another one
        has happened.
        """
        with self._transaction("claim_and_close"):
            receipt = self._accrual.settle(self._state, caller)
            unstaked = self._ledger.stake_of(self._state, caller)
            if unstaked:
                self._ledger.debit(self._state, caller, unstaked)
                self._ledger.release(caller, unstaked)
            self._accrual.pay(receipt)

            self._emit_claim(caller, receipt)
            if unstaked:
                self._emit(EventKind.TOKEN_REMOVED, caller, {
                    "amount": unstaked,
                    "balance": 0,
                    "total_staked": self._state.total_staked,
                })
            return receipt.amount, unstaked

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current_farm_period(self) -> int:
        return self._period_clock.current_period(self._state)

    def total_pool_balance(self) -> int:
        return self._state.total_staked

    def eligible_liquidity_per_period(self, period: int) -> int:
        return self._snapshots.eligible_liquidity(self._state, period)

    def incentive_to_be_claimed(self, participant: str) -> int:
        return self._accrual.incentive_to_be_claimed(self._state, participant)

    def period_rewards(self, participant: str) -> list[PeriodReward]:
        return self._accrual.period_rewards(self._state, participant)

    def current_farm_incentive(self, amount: int) -> int:
        return self._accrual.current_farm_incentive(self._state, amount)

    def distribution_blocks(self, period: int) -> int:
        """First block of ``period``."""
        return self._period_clock.period_boundary(self._state, period)

    def stake_of(self, participant: str) -> int:
        return self._ledger.stake_of(self._state, participant)

    def last_claimed_period(self, participant: str) -> int:
        account = self._state.peek_account(participant)
        return account.last_claimed_period if account is not None else 0

    def status(self) -> dict[str, Any]:
        """Return a farm status summary."""
        initialized = self._state.initialized
        return {
            "address": self._address,
            "initialized": initialized,
            "start_block": self._state.start_time,
            "current_period": self.current_farm_period() if initialized else None,
            "started": self._period_clock.has_started(self._state) if initialized else False,
            "finished": self._period_clock.is_finished(self._state) if initialized else False,
            "period_count": self._config.period_count,
            "weekly_incentive": self._config.weekly_incentive,
            "total_staked": self._state.total_staked,
            "participants": {
                "total": len(self._state.accounts),
                "staked": sum(1 for a in self._state.accounts.values() if a.balance > 0),
            },
            "claimed_total": sum(a.claimed_total for a in self._state.accounts.values()),
            "events": self._event_log.count,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        """Run one mutating call all-or-nothing.

        Every call takes its own savepoint, including a call an asset makes
        back into the farm while an outer call is still running. A failed
        inner call is undone even when the asset catches its error and lets
        the outer call carry on. Only the outermost call commits events to
        the log.

        State is restored in place so that references held by an outer
        call stay live.
        """
        outermost = self._pending is None
        if outermost:
            self._pending = []
        snapshot = copy.deepcopy(self._state)
        seq = self._event_seq
        mark = len(self._pending)
        try:
            yield
        except Exception:
            vars(self._state).update(vars(snapshot))
            self._event_seq = seq
            del self._pending[mark:]
            log.info("service: %s rolled back nested=%s", operation, not outermost)
            raise
        else:
            if outermost:
                self._event_log.extend(self._pending)
        finally:
            if outermost:
                self._pending = None

    def _emit(self, kind: EventKind, actor_id: str, payload: dict[str, Any]) -> None:
        if self._pending is None:
            raise RuntimeError("events can only be emitted inside a farm call")
        self._event_seq += 1
        self._pending.append(EventRecord.create(
            event_id=f"{self._address}:{self._event_seq}",
            event_kind=kind,
            actor_id=actor_id,
            payload=payload,
            block=self._period_clock.now(),
        ))

    def _emit_claim(self, caller: str, receipt: ClaimReceipt) -> None:
        self._emit(EventKind.INCENTIVE_CLAIMED, receipt.participant, {
            "amount": receipt.amount,
            "from_period": receipt.from_period,
            "to_period": receipt.to_period,
            "claimed_by": caller,
        })
