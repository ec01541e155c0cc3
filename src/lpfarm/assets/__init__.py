"""Asset collaborators — the pool-share and reward token interfaces."""

from lpfarm.assets.interface import PoolShareAsset, RewardAsset
from lpfarm.assets.memory import HookToken, InMemoryToken, PermitToken

__all__ = [
    "HookToken",
    "InMemoryToken",
    "PermitToken",
    "PoolShareAsset",
    "RewardAsset",
]
