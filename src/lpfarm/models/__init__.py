"""Core data models for lpfarm."""

from lpfarm.models.farm import (
    ClaimReceipt,
    FarmState,
    FinalPeriodPolicy,
    PeriodReward,
    StakeAccount,
    StakeStatus,
)
from lpfarm.models.permit import AuthorizedDepositPermit, PermitDomain, PermitSignature

__all__ = [
    "AuthorizedDepositPermit",
    "ClaimReceipt",
    "FarmState",
    "FinalPeriodPolicy",
    "PeriodReward",
    "PermitDomain",
    "PermitSignature",
    "StakeAccount",
    "StakeStatus",
]
