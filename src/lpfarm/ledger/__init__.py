"""Stake ledger — deposits and withdrawals of pool shares."""

from lpfarm.ledger.stake_ledger import StakeLedger

__all__ = ["StakeLedger"]
