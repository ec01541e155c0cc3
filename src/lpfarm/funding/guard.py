"""Initialization guard — the one-shot funding transition.

A farm is dormant until the funding authority sends it exactly the total
reward amount through the reward asset's receive hook. The hook payload is
the start block, big-endian, in a fixed number of bytes (3 in the
reference deployment, so start blocks up to 16,777,215).

Rules, checked in this order:
1. The notifying asset is the reward asset and the sender is the funding
   authority (Unauthorized).
2. The amount equals the configured total (WrongAmount).
3. The payload is exactly ``start_time_bytes`` long (MalformedStartTime).
4. The decoded start block is after the current block (StartTimeNotInFuture).
5. The guard has not fired before (AlreadyInitialized).

On success the start block is set, the per-period pot is fixed and period
0's opening liquidity is established. There is no way back.
"""

from __future__ import annotations

import logging

from lpfarm.config import FarmConfig
from lpfarm.crypto.permit import same_address
from lpfarm.engine.snapshots import SnapshotStore
from lpfarm.errors import (
    AlreadyInitialized,
    MalformedStartTime,
    StartTimeNotInFuture,
    Unauthorized,
    WrongAmount,
)
from lpfarm.models.farm import FarmState

log = logging.getLogger(__name__)


def decode_start_block(user_data: bytes, width: int = 3) -> int:
    """Decode a fixed-width big-endian start block.

    Raises:
        MalformedStartTime: If ``user_data`` is not exactly ``width`` bytes.
    """
    if not isinstance(user_data, (bytes, bytearray)) or len(user_data) != width:
        raise MalformedStartTime(
            f"start block must be exactly {width} bytes",
            details={"length": len(user_data) if isinstance(user_data, (bytes, bytearray)) else None},
        )
    return int.from_bytes(user_data, "big")


def encode_start_block(start_block: int, width: int = 3) -> bytes:
    """Encode a start block as the funding payload."""
    return start_block.to_bytes(width, "big")


class InitializationGuard:
    """Applies the funding transition to a FarmState.

    Usage:
        guard = InitializationGuard(config, reward_asset_address, snapshots)
        start = guard.accept_funding(state, token_address, sender, amount, data, now)
    """

    def __init__(
        self,
        config: FarmConfig,
        reward_asset: str,
        snapshots: SnapshotStore,
    ) -> None:
        self._config = config
        self._reward_asset = reward_asset
        self._snapshots = snapshots

    def accept_funding(
        self,
        state: FarmState,
        token: str,
        sender: str,
        amount: int,
        user_data: bytes,
        now: int,
    ) -> int:
        """Validate a funding notification and initialize the farm.

        Args:
            state: The farm ledger context.
            token: Address of the asset that sent the notification.
            sender: The account the tokens came from.
            amount: Tokens received.
            user_data: Encoded start block.
            now: Current block.

        Returns:
            The decoded start block.
        """
        if not same_address(token, self._reward_asset):
            raise Unauthorized(
                "funding must arrive in the reward asset",
                details={"token": token},
            )
        if not same_address(sender, self._config.funding_authority):
            raise Unauthorized(
                "only the funding authority can fund the farm",
                details={"sender": sender},
            )
        if amount != self._config.total_funding:
            raise WrongAmount(
                "funding amount does not match total incentive",
                details={"expected": self._config.total_funding, "received": amount},
            )
        start = decode_start_block(user_data, self._config.start_time_bytes)
        if start <= now:
            raise StartTimeNotInFuture(
                "start block must be in the future",
                details={"start_block": start, "current_block": now},
            )
        if state.initialized:
            raise AlreadyInitialized(
                "farm already funded",
                details={"start_block": state.start_time},
            )

        state.start_time = start
        state.weekly_incentive = self._config.weekly_incentive
        self._snapshots.establish(state)

        if self._config.undistributed_remainder:
            log.info(
                "guard: %d units of funding are not divisible into %d periods and stay in custody",
                self._config.undistributed_remainder, self._config.period_count,
            )
        log.info(
            "guard: farm initialized start_block=%d weekly_incentive=%d",
            start, state.weekly_incentive,
        )
        return start
