"""In-memory asset implementations.

These back the farm in tests and simulations. They follow the token
semantics the farm was designed against:

- InMemoryToken: balances, allowances, transfer / transfer_from.
- PermitToken: adds EIP-2612 ``permit`` with per-owner nonces; this is the
  pool-share asset.
- HookToken: adds an ERC777-style ``send`` that notifies a registered
  recipient hook and reverts the movement if the hook rejects it; this is
  the reward asset, and ``send`` is how a farm gets funded.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

from lpfarm.crypto.permit import verify_permit
from lpfarm.engine.period_clock import BlockClock
from lpfarm.errors import TransferFailed
from lpfarm.models.permit import AuthorizedDepositPermit, PermitDomain, PermitSignature

log = logging.getLogger(__name__)

# hook(token, operator, sender, recipient, amount, user_data, operator_data)
RecipientHook = Callable[["HookToken", str, str, str, int, bytes, bytes], None]


class InMemoryToken:
    """Fungible token ledger keyed by address strings.

    Usage:
        token = InMemoryToken("0xToken", "Pool Share")
        token.mint("0xAlice", 1_000)
        token.approve("0xAlice", "0xFarm", 500)
        token.transfer_from("0xFarm", "0xAlice", "0xFarm", 500)
    """

    def __init__(self, address: str, name: str = "Token") -> None:
        self._address = address
        self._name = name
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._total_supply = 0

    @property
    def address(self) -> str:
        return self._address

    @property
    def name(self) -> str:
        return self._name

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def mint(self, recipient: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError("Mint amount must be positive")
        self._balances[recipient] = self.balance_of(recipient) + amount
        self._total_supply += amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Allowance must be >= 0")
        self._allowances[(owner, spender)] = amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._move(sender, recipient, amount)

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise TransferFailed(
                "transfer amount exceeds allowance",
                details={"token": self._name, "owner": owner, "spender": spender,
                         "allowance": allowed, "amount": amount},
            )
        self._move(owner, recipient, amount)
        self._allowances[(owner, spender)] = allowed - amount

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TransferFailed("transfer amount must be >= 0", details={"amount": amount})
        held = self.balance_of(sender)
        if held < amount:
            raise TransferFailed(
                "transfer amount exceeds balance",
                details={"token": self._name, "sender": sender, "balance": held, "amount": amount},
            )
        self._balances[sender] = held - amount
        self._balances[recipient] = self.balance_of(recipient) + amount


class PermitToken(InMemoryToken):
    """Pool-share token with EIP-2612 permits.

    Permit deadlines are checked against ``clock`` when one is given.
    """

    def __init__(
        self,
        address: str,
        name: str = "Uniswap V2",
        version: str = "1",
        chain_id: int = 1,
        clock: Optional[BlockClock] = None,
    ) -> None:
        super().__init__(address, name)
        self._domain = PermitDomain(
            name=name,
            version=version,
            chain_id=chain_id,
            verifying_contract=address,
        )
        self._nonces: Dict[str, int] = {}
        self._clock = clock

    def nonces(self, owner: str) -> int:
        return self._nonces.get(owner.lower(), 0)

    def permit_domain(self) -> PermitDomain:
        return self._domain

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
        """Verify a signed allowance, consume the nonce, grant the allowance."""
        now = self._clock.now() if self._clock is not None else 0
        permit = AuthorizedDepositPermit(
            owner=owner,
            spender=spender,
            value=value,
            nonce=self.nonces(owner),
            deadline=deadline,
        )
        verify_permit(self._domain, permit, PermitSignature(v=v, r=r, s=s), now=now)
        self._nonces[owner.lower()] = permit.nonce + 1
        self.approve(owner, spender, value)


class HookToken(InMemoryToken):
    """Reward token whose ``send`` notifies the recipient.

    Usage:
        token = HookToken("0xReward", "HOPR")
        token.register_recipient(farm_address, farm.tokens_received)
        token.send(dao, farm_address, amount, b"\\x00\\x01\\x00")
    """

    def __init__(self, address: str, name: str = "Reward") -> None:
        super().__init__(address, name)
        self._hooks: Dict[str, RecipientHook] = {}

    def register_recipient(self, recipient: str, hook: RecipientHook) -> None:
        self._hooks[recipient] = hook

    def send(
        self,
        sender: str,
        recipient: str,
        amount: int,
        user_data: bytes = b"",
        operator_data: bytes = b"",
        operator: Optional[str] = None,
    ) -> None:
        """Move tokens, then notify the recipient hook.

        If the hook raises, the movement is undone and the error propagates.
        """
        before = (self.balance_of(sender), self.balance_of(recipient))
        self._move(sender, recipient, amount)
        hook = self._hooks.get(recipient)
        if hook is None:
            return
        try:
            hook(self, operator or sender, sender, recipient, amount, user_data, operator_data)
        except Exception:
            self._balances[sender], self._balances[recipient] = before
            log.info("token: send to %s reverted by recipient hook", recipient)
            raise
