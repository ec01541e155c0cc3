"""Asset collaborator contracts — what the farm needs from its two tokens.

The farm never moves balances itself. It holds pool shares and rewards in
custody at its own address and asks the assets to move them. Any token
implementation (on-chain adapter, in-memory ledger) can back a farm as long
as it satisfies these Protocols; the ledger and claim engine only ever see
the Protocols.

Asset calls are treated as untrusted interactions: they may call back into
the farm. The farm finishes every state change before making one.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lpfarm.models.permit import PermitDomain


@runtime_checkable
class PoolShareAsset(Protocol):
    """The staked liquidity token (allowance + EIP-2612 permit)."""

    @property
    def address(self) -> str:
        ...

    def balance_of(self, holder: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        ...

    def nonces(self, owner: str) -> int:
        ...

    def permit_domain(self) -> PermitDomain:
        ...

    def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        v: int,
        r: int | bytes,
        s: int | bytes,
    ) -> None:
        ...


@runtime_checkable
class RewardAsset(Protocol):
    """The incentive token paid out on claims."""

    @property
    def address(self) -> str:
        ...

    def balance_of(self, holder: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        ...
