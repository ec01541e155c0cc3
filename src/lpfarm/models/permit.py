"""Signed deposit authorization models (EIP-2612 permits).

A permit is verified and discarded; nothing here is stored in the ledger.
The nonce lives with the pool-share asset that issued the domain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class PermitDomain:
    """EIP-712 domain of the pool-share asset."""
    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def as_typed_data(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


@dataclass(frozen=True)
class AuthorizedDepositPermit:
    """Single-use allowance grant signed off-chain by ``owner``."""
    owner: str
    spender: str
    value: int
    nonce: int
    deadline: int

    def as_typed_data(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "spender": self.spender,
            "value": self.value,
            "nonce": self.nonce,
            "deadline": self.deadline,
        }


@dataclass(frozen=True)
class PermitSignature:
    """Secp256k1 signature components as carried by ``permit(v, r, s)``."""
    v: int
    r: Union[int, bytes]
    s: Union[int, bytes]

    def vrs(self) -> tuple:
        return (self.v, self.r, self.s)
