"""Signature handling for authorized deposits."""

from lpfarm.crypto.permit import (
    permit_message,
    recover_permit_signer,
    same_address,
    sign_permit,
    verify_permit,
)

__all__ = [
    "permit_message",
    "recover_permit_signer",
    "same_address",
    "sign_permit",
    "verify_permit",
]
