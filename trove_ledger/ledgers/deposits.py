"""Stability pool deposit ledger."""
from __future__ import annotations

import logging
from dataclasses import replace

from .. import codec, fees
from ..config import ProtocolConfig
from ..errors import InsufficientLiquidityError, NotInitializedError, NotRentExemptError
from ..host.accounts import Account
from ..interfaces import RentVerifier, TokenProgram
from ..models import Deposit, identity_to_str

logger = logging.getLogger(__name__)


class DepositLedger:
    """State transitions of stability pool deposits."""

    def __init__(
        self, config: ProtocolConfig, rent: RentVerifier, token_program: TokenProgram
    ) -> None:
        self._config = config
        self._rent = rent
        self._token_program = token_program

    @staticmethod
    def load(account: Account) -> Deposit:
        return codec.unpack_deposit(account.data)

    @staticmethod
    def _store(deposit: Deposit, account: Account) -> None:
        codec.store_deposit(deposit, account.data)

    def _load_initialized(self, account: Account) -> Deposit:
        deposit = self.load(account)
        if not deposit.initialized:
            raise NotInitializedError(
                f"Deposit {identity_to_str(account.key)} is not initialized"
            )
        return deposit

    def add_deposit(
        self,
        depositor: Account,
        deposit_account: Account,
        token_program: Account,
        bank: Account,
        governance_bank: Account,
        mint: Account,
        amount: int,
    ) -> Deposit:
        """Burn ``amount`` stable tokens from ``bank`` and credit the deposit.

        The first deposit fixes ``owner``, ``bank`` and ``governance_bank``;
        later deposits only add to ``token_amount``.
        """
        if not self._rent.is_exempt(deposit_account.balance, len(deposit_account.data)):
            raise NotRentExemptError(
                f"Deposit {identity_to_str(deposit_account.key)} is not rent exempt"
            )

        deposit = self.load(deposit_account)
        if deposit.initialized:
            deposit = replace(
                deposit, token_amount=fees.checked_add(deposit.token_amount, amount)
            )
        else:
            deposit = Deposit(
                initialized=True,
                token_amount=amount,
                bank=bank.key,
                governance_bank=governance_bank.key,
                owner=depositor.key,
            )

        burn_amount = fees.checked_mul(amount, self._config.token_denomination)
        logger.info("Burning %d stable units for pool deposit", burn_amount)
        self._token_program.burn(
            token_program.key, bank.key, mint.key, depositor.key, [depositor.key], burn_amount
        )

        self._store(deposit, deposit_account)
        return deposit

    def withdraw(self, privileged: Account, deposit_account: Account, amount: int) -> Deposit:
        deposit = self._load_initialized(deposit_account)
        if amount > deposit.token_amount:
            raise InsufficientLiquidityError(
                f"Withdraw {amount} exceeds deposited {deposit.token_amount}"
            )

        deposit = replace(deposit, token_amount=deposit.token_amount - amount)
        self._store(deposit, deposit_account)
        logger.info(
            "Withdrew %d from deposit %s by %s",
            amount, identity_to_str(deposit_account.key), identity_to_str(privileged.key),
        )
        return deposit

    def add_reward(
        self,
        privileged: Account,
        deposit_account: Account,
        coin: int,
        governance: int,
        token: int,
    ) -> Deposit:
        deposit = self._load_initialized(deposit_account)
        deposit = replace(
            deposit,
            reward_coin_amount=fees.checked_add(deposit.reward_coin_amount, coin),
            reward_governance_token_amount=fees.checked_add(
                deposit.reward_governance_token_amount, governance
            ),
            reward_token_amount=fees.checked_add(deposit.reward_token_amount, token),
        )
        self._store(deposit, deposit_account)
        logger.debug(
            "Rewards added to deposit %s by %s",
            identity_to_str(deposit_account.key), identity_to_str(privileged.key),
        )
        return deposit

    def claim_reward(self, privileged: Account, deposit_account: Account) -> Deposit:
        deposit = replace(
            self._load_initialized(deposit_account),
            reward_token_amount=0,
            reward_governance_token_amount=0,
            reward_coin_amount=0,
        )
        self._store(deposit, deposit_account)
        logger.info(
            "Rewards claimed for deposit %s by %s",
            identity_to_str(deposit_account.key), identity_to_str(privileged.key),
        )
        return deposit
