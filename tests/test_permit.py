"""Tests for EIP-2612 permit verification."""

import pytest
from eth_account import Account

from lpfarm.assets.memory import PermitToken
from lpfarm.crypto.permit import recover_permit_signer, sign_permit, verify_permit
from lpfarm.engine.period_clock import ManualClock
from lpfarm.errors import AuthorizationExpired, InvalidAuthorization, NonceMismatch, TransferFailed
from lpfarm.models.permit import AuthorizedDepositPermit, PermitDomain, PermitSignature

OWNER_KEY = "0x" + "11" * 32
OTHER_KEY = "0x" + "22" * 32
OWNER = Account.from_key(OWNER_KEY).address
SPENDER = "0x00000000000000000000000000000000000000fa"
POOL = "0x00000000000000000000000000000000000000aa"
DOMAIN = PermitDomain(name="Uniswap V2", version="1", chain_id=1, verifying_contract=POOL)


def _permit(nonce: int = 0, value: int = 100, deadline: int = 500) -> AuthorizedDepositPermit:
    return AuthorizedDepositPermit(
        owner=OWNER, spender=SPENDER, value=value, nonce=nonce, deadline=deadline,
    )


class TestVerifyPermit:
    def test_valid_signature(self) -> None:
        signature = sign_permit(DOMAIN, _permit(), OWNER_KEY)
        assert verify_permit(DOMAIN, _permit(), signature, now=100) == OWNER

    def test_recover_signer(self) -> None:
        signature = sign_permit(DOMAIN, _permit(), OWNER_KEY)
        assert recover_permit_signer(DOMAIN, _permit(), signature) == OWNER

    def test_expired(self) -> None:
        signature = sign_permit(DOMAIN, _permit(deadline=50), OWNER_KEY)
        with pytest.raises(AuthorizationExpired):
            verify_permit(DOMAIN, _permit(deadline=50), signature, now=51)

    def test_other_signer(self) -> None:
        signature = sign_permit(DOMAIN, _permit(), OTHER_KEY)
        with pytest.raises(InvalidAuthorization):
            verify_permit(DOMAIN, _permit(), signature, now=100)

    def test_other_domain(self) -> None:
        other = PermitDomain(name="Uniswap V2", version="1", chain_id=5, verifying_contract=POOL)
        signature = sign_permit(other, _permit(), OWNER_KEY)
        with pytest.raises(InvalidAuthorization):
            verify_permit(DOMAIN, _permit(), signature, now=100)

    def test_consumed_nonce(self) -> None:
        signature = sign_permit(DOMAIN, _permit(nonce=2), OWNER_KEY)
        with pytest.raises(NonceMismatch) as excinfo:
            verify_permit(DOMAIN, _permit(nonce=3), signature, now=100)
        assert excinfo.value.details["signed_nonce"] == 2

    def test_consumed_nonce_outside_lookback(self) -> None:
        signature = sign_permit(DOMAIN, _permit(nonce=0), OWNER_KEY)
        with pytest.raises(InvalidAuthorization):
            verify_permit(DOMAIN, _permit(nonce=5), signature, now=100, replay_lookback=2)

    def test_garbage_signature(self) -> None:
        signature = PermitSignature(v=27, r=1, s=1)
        with pytest.raises(InvalidAuthorization):
            verify_permit(DOMAIN, _permit(), signature, now=100)


class TestPermitToken:
    def test_permit_grants_allowance_and_bumps_nonce(self) -> None:
        clock = ManualClock(100)
        token = PermitToken(POOL, clock=clock)
        signature = sign_permit(token.permit_domain(), _permit(), OWNER_KEY)
        token.permit(OWNER, SPENDER, 100, 500, signature.v, signature.r, signature.s)
        assert token.allowance(OWNER, SPENDER) == 100
        assert token.nonces(OWNER) == 1
        assert token.nonces(OWNER.lower()) == 1

    def test_permit_cannot_be_reused(self) -> None:
        token = PermitToken(POOL, clock=ManualClock(100))
        signature = sign_permit(token.permit_domain(), _permit(), OWNER_KEY)
        token.permit(OWNER, SPENDER, 100, 500, signature.v, signature.r, signature.s)
        with pytest.raises(NonceMismatch):
            token.permit(OWNER, SPENDER, 100, 500, signature.v, signature.r, signature.s)

    def test_transfer_from_needs_balance(self) -> None:
        token = PermitToken(POOL, clock=ManualClock(100))
        token.approve(OWNER, SPENDER, 100)
        with pytest.raises(TransferFailed, match="balance"):
            token.transfer_from(SPENDER, OWNER, SPENDER, 100)
