"""Permit verification — EIP-2612 signed allowances for pool-share deposits.

A permit lets a liquidity provider authorize the farm to pull pool shares
with an off-chain signature instead of a prior on-chain ``approve``. The
signature covers the EIP-712 typed message

    Permit(address owner,address spender,uint256 value,uint256 nonce,uint256 deadline)

under the pool-share asset's domain. Verification here is a pure function
(typed message → recovered signer); the nonce is read from the asset and
consumed by the asset, never stored by the farm.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_keys.exceptions import BadSignature, ValidationError

from lpfarm.errors import AuthorizationExpired, InvalidAuthorization, NonceMismatch
from lpfarm.models.permit import AuthorizedDepositPermit, PermitDomain, PermitSignature


PERMIT_TYPES: Dict[str, Any] = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "Permit": [
        {"name": "owner", "type": "address"},
        {"name": "spender", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ],
}


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address comparison."""
    return a.lower() == b.lower()


def permit_message(domain: PermitDomain, permit: AuthorizedDepositPermit) -> SignableMessage:
    """Build the EIP-712 signable message for a permit."""
    return encode_typed_data(
        full_message={
            "types": PERMIT_TYPES,
            "primaryType": "Permit",
            "domain": domain.as_typed_data(),
            "message": permit.as_typed_data(),
        }
    )


def recover_permit_signer(
    domain: PermitDomain,
    permit: AuthorizedDepositPermit,
    signature: PermitSignature,
) -> Optional[str]:
    """Return the address that signed ``permit``, or None if unrecoverable."""
    message = permit_message(domain, permit)
    try:
        return Account.recover_message(message, vrs=signature.vrs())
    except (BadSignature, ValidationError, ValueError, TypeError):
        return None


def sign_permit(
    domain: PermitDomain,
    permit: AuthorizedDepositPermit,
    private_key: str,
) -> PermitSignature:
    """Sign ``permit`` with a local key."""
    signed = Account.sign_message(permit_message(domain, permit), private_key=private_key)
    return PermitSignature(v=signed.v, r=signed.r, s=signed.s)


def verify_permit(
    domain: PermitDomain,
    permit: AuthorizedDepositPermit,
    signature: PermitSignature,
    now: int,
    replay_lookback: int = 32,
) -> str:
    """Verify a permit against the owner's current nonce.

    Args:
        domain: The pool-share asset's EIP-712 domain.
        permit: The permit, carrying the owner's *current* nonce.
        signature: The (v, r, s) signature supplied by the caller.
        now: Current block/time counter.
        replay_lookback: How many consumed nonces to try when the signature
            does not match the current one.

    Returns:
        The recovered signer (equal to ``permit.owner``).

    Raises:
        AuthorizationExpired: If ``now`` is past the deadline.
        NonceMismatch: If the signature matches an already consumed nonce.
        InvalidAuthorization: For any other signer mismatch.
    """
    if now > permit.deadline:
        raise AuthorizationExpired(
            "permit deadline has passed",
            details={"deadline": permit.deadline, "now": now},
        )

    signer = recover_permit_signer(domain, permit, signature)
    if signer is not None and same_address(signer, permit.owner):
        return signer

    oldest = max(0, permit.nonce - replay_lookback)
    for nonce in range(permit.nonce - 1, oldest - 1, -1):
        replayed = AuthorizedDepositPermit(
            owner=permit.owner,
            spender=permit.spender,
            value=permit.value,
            nonce=nonce,
            deadline=permit.deadline,
        )
        earlier = recover_permit_signer(domain, replayed, signature)
        if earlier is not None and same_address(earlier, permit.owner):
            raise NonceMismatch(
                "permit was signed for a consumed nonce",
                details={"owner": permit.owner, "signed_nonce": nonce, "current_nonce": permit.nonce},
            )

    raise InvalidAuthorization(
        "permit signature does not match owner",
        details={"owner": permit.owner, "recovered": signer},
    )
