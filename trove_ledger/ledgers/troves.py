"""Debt position (trove) ledger."""
from __future__ import annotations

import logging
from dataclasses import replace

from .. import codec, fees
from ..config import ProtocolConfig
from ..errors import (
    AlreadyInitializedError,
    AlreadyLiquidatedError,
    AmountMismatchError,
    InvalidCollateralError,
    NotInitializedError,
    NotReceivedError,
    NotRentExemptError,
)
from ..guard import require_owner
from ..host.accounts import Account
from ..interfaces import PriceSource, RentVerifier, TokenProgram
from ..models import Trove, identity_to_str

logger = logging.getLogger(__name__)


class TroveLedger:
    """State transitions of individual debt positions.

    Every method loads the record, validates, and writes it back once. The
    only external side effect (the token burn on close) happens after all
    validation has passed.
    """

    def __init__(
        self,
        config: ProtocolConfig,
        price_source: PriceSource,
        rent: RentVerifier,
        token_program: TokenProgram,
    ) -> None:
        self._config = config
        self._fees = config.fees
        self._price_source = price_source
        self._rent = rent
        self._token_program = token_program

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def load(account: Account) -> Trove:
        return codec.unpack_trove(account.data)

    @staticmethod
    def _store(trove: Trove, account: Account) -> None:
        codec.store_trove(trove, account.data)

    def _load_active(self, account: Account) -> Trove:
        trove = self.load(account)
        if not trove.initialized:
            raise NotInitializedError(
                f"Trove {identity_to_str(account.key)} is not initialized"
            )
        if trove.liquidated:
            raise AlreadyLiquidatedError(
                f"Trove {identity_to_str(account.key)} is already liquidated"
            )
        return trove

    def _check_collateral(self, debt: int, collateral: int) -> None:
        if not fees.check_collateral(debt, collateral, self._fees, self._price_source):
            raise InvalidCollateralError(
                f"Collateral {collateral} below minimum ratio "
                f"{self._fees.min_collateral_ratio} for debt {debt}"
            )

    @staticmethod
    def _sweep(source: Account, destination: Account, new_balance: int) -> None:
        destination.balance = new_balance
        source.balance = 0
        source.clear_data()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def borrow(
        self,
        borrower: Account,
        trove_account: Account,
        borrow_amount: int,
        collateral_amount: int,
    ) -> Trove:
        self._check_collateral(borrow_amount, collateral_amount)

        if not self._rent.is_exempt(trove_account.balance, len(trove_account.data)):
            raise NotRentExemptError(
                f"Trove {identity_to_str(trove_account.key)} is not rent exempt"
            )

        if self.load(trove_account).initialized:
            raise AlreadyInitializedError(
                f"Trove {identity_to_str(trove_account.key)} already exists"
            )

        trove = Trove(
            initialized=True,
            received=False,
            liquidated=False,
            borrow_amount=borrow_amount,
            collateral_amount=collateral_amount,
            team_fee=fees.team_fee(borrow_amount, self._fees),
            depositor_fee=fees.depositor_fee(borrow_amount, self._fees),
            amount_to_close=fees.debt_amount(borrow_amount, self._fees),
            owner=borrower.key,
        )
        self._store(trove, trove_account)
        logger.info(
            "Trove opened: borrow=%d collateral=%d to_close=%d",
            borrow_amount, collateral_amount, trove.amount_to_close,
        )
        return trove

    def top_up_collateral(
        self, owner: Account, trove_account: Account, escrow: Account, amount: int
    ) -> Trove:
        trove = self._load_active(trove_account)
        require_owner(owner, trove.owner)

        if escrow.balance != amount:
            raise AmountMismatchError(
                f"Escrow holds {escrow.balance}, operation declares {amount}"
            )

        trove = replace(
            trove, collateral_amount=fees.checked_add(trove.collateral_amount, amount)
        )
        self._store(trove, trove_account)
        return trove

    def withdraw_collateral(
        self, owner: Account, trove_account: Account, amount: int
    ) -> Trove:
        trove = self._load_active(trove_account)
        require_owner(owner, trove.owner)

        trove = replace(
            trove, collateral_amount=fees.checked_sub(trove.collateral_amount, amount)
        )
        self._check_collateral(trove.borrow_amount, trove.collateral_amount)

        self._store(trove, trove_account)
        return trove

    def redeem_collateral(
        self, signer: Account, trove_account: Account, amount: int
    ) -> Trove:
        # No owner check and no ratio re-check, see WITHDRAW_COLLATERAL
        trove = self._load_active(trove_account)
        trove = replace(
            trove, collateral_amount=fees.checked_sub(trove.collateral_amount, amount)
        )
        self._store(trove, trove_account)
        logger.info(
            "Redeemed %d from trove %s by %s",
            amount, identity_to_str(trove_account.key), identity_to_str(signer.key),
        )
        return trove

    def mark_received(self, privileged: Account, trove_account: Account) -> Trove:
        trove = replace(self._load_active(trove_account), received=True)
        self._store(trove, trove_account)
        logger.info(
            "Trove %s marked received by %s",
            identity_to_str(trove_account.key), identity_to_str(privileged.key),
        )
        return trove

    def liquidate(self, privileged: Account, trove_account: Account) -> int:
        """Sweep the trove's balance to the privileged account.

        Returns the swept amount.
        """
        trove = self.load(trove_account)
        if trove.liquidated:
            raise AlreadyLiquidatedError(
                f"Trove {identity_to_str(trove_account.key)} is already liquidated"
            )
        if not trove.received:
            raise NotReceivedError(
                f"Trove {identity_to_str(trove_account.key)} is not received yet"
            )

        swept = trove_account.balance
        new_balance = fees.checked_add(privileged.balance, swept)
        self._sweep(trove_account, privileged, new_balance)
        logger.info("Trove %s liquidated, %d swept", identity_to_str(trove_account.key), swept)
        return swept

    def close(
        self,
        owner: Account,
        trove_account: Account,
        token_program: Account,
        source: Account,
        mint: Account,
    ) -> int:
        """Burn the closing amount and return the trove's balance to its owner.

        Does not require ``received``. Returns the swept amount.
        """
        trove = self._load_active(trove_account)
        require_owner(owner, trove.owner)

        burn_amount = fees.checked_mul(trove.amount_to_close, self._config.token_denomination)
        swept = trove_account.balance
        new_balance = fees.checked_add(owner.balance, swept)

        logger.info("Burning %d stable units to close trove", burn_amount)
        self._token_program.burn(
            token_program.key, source.key, mint.key, owner.key, [owner.key], burn_amount
        )

        self._sweep(trove_account, owner, new_balance)
        logger.info("Trove %s closed, %d returned", identity_to_str(trove_account.key), swept)
        return swept
