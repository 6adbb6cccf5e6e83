"""In-memory token program: token accounts, mint supply and burn."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from ..errors import TokenProgramError
from ..models import identity_to_str

logger = logging.getLogger(__name__)


@dataclass
class TokenAccount:
    mint: bytes
    authority: bytes
    amount: int = 0


class InMemoryTokenProgram:
    """Token program with the burn semantics the ledgers rely on.

    A burn either fully applies or raises ``TokenProgramError`` without
    touching any balance.
    """

    def __init__(self, program_id: bytes) -> None:
        self.program_id = program_id
        self._accounts: dict[bytes, TokenAccount] = {}
        self._supply: dict[bytes, int] = {}

    # ------------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------------

    def create_mint(self, mint: bytes) -> None:
        self._supply.setdefault(mint, 0)

    def create_account(
        self, key: bytes, mint: bytes, authority: bytes, amount: int = 0
    ) -> None:
        if key in self._accounts:
            raise TokenProgramError(f"Token account {identity_to_str(key)} exists")
        self.create_mint(mint)
        self._accounts[key] = TokenAccount(mint=mint, authority=authority)
        if amount:
            self.mint_to(mint, key, amount)

    def mint_to(self, mint: bytes, destination: bytes, amount: int) -> None:
        account = self._get(destination)
        if account.mint != mint:
            raise TokenProgramError("Mint mismatch on mint_to")
        account.amount += amount
        self._supply[mint] = self._supply.get(mint, 0) + amount

    def balance_of(self, key: bytes) -> int:
        return self._get(key).amount

    def supply_of(self, mint: bytes) -> int:
        return self._supply.get(mint, 0)

    def has_account(self, key: bytes) -> bool:
        return key in self._accounts

    # ------------------------------------------------------------------
    # Burn primitive
    # ------------------------------------------------------------------

    def burn(
        self,
        program_id: bytes,
        source: bytes,
        mint: bytes,
        authority: bytes,
        signers: Sequence[bytes],
        amount: int,
    ) -> None:
        if program_id != self.program_id:
            raise TokenProgramError(
                f"Incorrect token program id {identity_to_str(program_id)}"
            )
        account = self._get(source)
        if account.mint != mint:
            raise TokenProgramError("Token account does not belong to mint")
        if account.authority != authority:
            raise TokenProgramError("Authority does not own the token account")
        if authority not in signers:
            raise TokenProgramError("Token account authority did not sign")
        if account.amount < amount:
            raise TokenProgramError(
                f"Insufficient funds: balance {account.amount}, burn {amount}"
            )

        account.amount -= amount
        self._supply[mint] -= amount
        logger.debug("Burned %d from %s", amount, identity_to_str(source))

    # ------------------------------------------------------------------
    # Transaction support
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "accounts": copy.deepcopy(self._accounts),
            "supply": dict(self._supply),
        }

    def restore(self, state: dict[str, Any]) -> None:
        self._accounts = state["accounts"]
        self._supply = state["supply"]

    def _get(self, key: bytes) -> TokenAccount:
        account = self._accounts.get(key)
        if account is None:
            raise TokenProgramError(f"Unknown token account {identity_to_str(key)}")
        return account
