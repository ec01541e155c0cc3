"""Farm error taxonomy.

Every rejection raised by the farm is a FarmError. Each subclass carries a
stable ``code`` so callers (and logs) can tell the reasons apart without
parsing messages. All of them are synchronous, non-retryable rejections of
the call that raised them: the service layer discards the call's state
changes before the error reaches the caller.

FarmError subclasses ValueError, so callers that only care about
"the request was invalid" can keep catching ValueError.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional


class FarmError(ValueError):
    """Base class for farm rejections."""

    code: str = "FARM_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:
        if self.details:
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


# ------------------------------------------------------------------
# Initialization
# ------------------------------------------------------------------

class NotInitialized(FarmError):
    """The farm has not been funded yet, so there is no period clock."""
    code = "NOT_INITIALIZED"


class AlreadyInitialized(FarmError):
    """The one-shot funding guard has already fired."""
    code = "ALREADY_INITIALIZED"


class Unauthorized(FarmError):
    """Funding arrived from the wrong asset or the wrong sender."""
    code = "UNAUTHORIZED"


class WrongAmount(FarmError):
    """Funding amount differs from the configured total."""
    code = "WRONG_AMOUNT"


class MalformedStartTime(FarmError):
    """Funding payload is not a fixed-width start block."""
    code = "MALFORMED_START_TIME"


class StartTimeNotInFuture(FarmError):
    """Decoded start block is not after the current block."""
    code = "START_TIME_NOT_IN_FUTURE"


# ------------------------------------------------------------------
# Claims
# ------------------------------------------------------------------

class TooEarlyToClaim(FarmError):
    """No period has finalized yet."""
    code = "TOO_EARLY_TO_CLAIM"


class NothingToClaim(FarmError):
    """The computed reward is zero."""
    code = "NOTHING_TO_CLAIM"


# ------------------------------------------------------------------
# Stake ledger
# ------------------------------------------------------------------

class InvalidAmount(FarmError):
    """Deposit or withdrawal amount is not positive."""
    code = "INVALID_AMOUNT"


class InsufficientStake(FarmError):
    """Withdrawal exceeds the participant's staked balance."""
    code = "INSUFFICIENT_STAKE"

    def __init__(
        self,
        *,
        requested: int,
        staked: int,
        participant: Optional[str] = None,
        message: str = "withdrawal exceeds staked balance",
    ) -> None:
        details: Dict[str, Any] = {"requested": int(requested), "staked": int(staked)}
        if participant is not None:
            details["participant"] = participant
        super().__init__(message, details=details)


# ------------------------------------------------------------------
# Signed authorizations
# ------------------------------------------------------------------

class InvalidAuthorization(FarmError):
    """Permit signature does not recover to the owner."""
    code = "INVALID_AUTHORIZATION"


class AuthorizationExpired(FarmError):
    """Permit deadline is in the past."""
    code = "AUTHORIZATION_EXPIRED"


class NonceMismatch(FarmError):
    """Permit was signed for a nonce that has already been consumed."""
    code = "NONCE_MISMATCH"


# ------------------------------------------------------------------
# Asset collaborators
# ------------------------------------------------------------------

class TransferFailed(FarmError):
    """An asset transfer was rejected (balance or allowance)."""
    code = "TRANSFER_FAILED"
