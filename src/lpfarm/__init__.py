"""lpfarm — time-windowed incentive ledger for liquidity providers."""

from lpfarm.config import FarmConfig
from lpfarm.errors import FarmError
from lpfarm.models.farm import FarmState, FinalPeriodPolicy, StakeAccount
from lpfarm.service import FarmService

__all__ = [
    "FarmConfig",
    "FarmError",
    "FarmService",
    "FarmState",
    "FinalPeriodPolicy",
    "StakeAccount",
]

__version__ = "0.1.0"
