"""Dispatcher: decodes an operation, authorizes it and routes it to a ledger."""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, Sequence

from .config import ProtocolConfig
from .errors import LedgerError
from .guard import authorize
from .host.accounts import Account, next_account
from .instruction import (
    AddDeposit,
    AddDepositReward,
    Borrow,
    ClaimDepositReward,
    CloseTrove,
    LiquidateTrove,
    Operation,
    ReceiveTrove,
    RedeemCollateral,
    TopUpCollateral,
    WithdrawCollateral,
    WithdrawDeposit,
    decode_operation,
    tag_of,
)
from .interfaces import PriceSource, RentVerifier, TokenProgram
from .ledgers import DepositLedger, TroveLedger

logger = logging.getLogger(__name__)


class Processor:
    """Entry point for one operation.

    Holds no state of its own: every call loads, validates and stores the
    records named by its accounts. The host is expected to give exclusive
    access to those accounts and to roll back on any raised ``LedgerError``.
    """

    def __init__(
        self,
        config: ProtocolConfig,
        price_source: PriceSource,
        rent: RentVerifier,
        token_program: TokenProgram,
    ) -> None:
        self._privileged_identity = config.privileged_identity
        self.troves = TroveLedger(config, price_source, rent, token_program)
        self.deposits = DepositLedger(config, rent, token_program)

        self._handlers: dict[type, Callable[[Any, Account, Iterator[Account]], Any]] = {
            Borrow: self._borrow,
            CloseTrove: self._close_trove,
            LiquidateTrove: self._liquidate_trove,
            WithdrawCollateral: self._withdraw_collateral,
            TopUpCollateral: self._top_up_collateral,
            RedeemCollateral: self._redeem_collateral,
            AddDeposit: self._add_deposit,
            WithdrawDeposit: self._withdraw_deposit,
            ClaimDepositReward: self._claim_deposit_reward,
            ReceiveTrove: self._receive_trove,
            AddDepositReward: self._add_deposit_reward,
        }

    def process(self, instruction_data: bytes, accounts: Sequence[Account]) -> Operation:
        """Execute one operation; raises ``LedgerError`` on any failure."""
        try:
            op = decode_operation(instruction_data)
        except LedgerError as e:
            logger.warning("Operation rejected: %s", e)
            raise

        name = type(op).__name__
        logger.info("Operation %s", name)

        try:
            remaining = iter(accounts)
            signer = next_account(remaining)
            authorize(tag_of(op), signer, self._privileged_identity)
            self._handlers[type(op)](op, signer, remaining)
        except LedgerError as e:
            logger.warning("Operation %s failed: %s", name, e)
            raise

        return op

    # ------------------------------------------------------------------
    # Debt position handlers
    # ------------------------------------------------------------------

    def _borrow(self, op: Borrow, signer: Account, rest: Iterator[Account]) -> None:
        trove = next_account(rest)
        self.troves.borrow(signer, trove, op.borrow_amount, op.collateral_amount)

    def _close_trove(self, op: CloseTrove, signer: Account, rest: Iterator[Account]) -> None:
        trove = next_account(rest)
        token_program = next_account(rest)
        source = next_account(rest)
        mint = next_account(rest)
        self.troves.close(signer, trove, token_program, source, mint)

    def _liquidate_trove(
        self, op: LiquidateTrove, signer: Account, rest: Iterator[Account]
    ) -> None:
        self.troves.liquidate(signer, next_account(rest))

    def _withdraw_collateral(
        self, op: WithdrawCollateral, signer: Account, rest: Iterator[Account]
    ) -> None:
        self.troves.withdraw_collateral(signer, next_account(rest), op.amount)

    def _top_up_collateral(
        self, op: TopUpCollateral, signer: Account, rest: Iterator[Account]
    ) -> None:
        trove = next_account(rest)
        escrow = next_account(rest)
        self.troves.top_up_collateral(signer, trove, escrow, op.amount)

    def _redeem_collateral(
        self, op: RedeemCollateral, signer: Account, rest: Iterator[Account]
    ) -> None:
        self.troves.redeem_collateral(signer, next_account(rest), op.amount)

    def _receive_trove(self, op: ReceiveTrove, signer: Account, rest: Iterator[Account]) -> None:
        self.troves.mark_received(signer, next_account(rest))

    # ------------------------------------------------------------------
    # Pool deposit handlers
    # ------------------------------------------------------------------

    def _add_deposit(self, op: AddDeposit, signer: Account, rest: Iterator[Account]) -> None:
        deposit = next_account(rest)
        token_program = next_account(rest)
        bank = next_account(rest)
        governance_bank = next_account(rest)
        mint = next_account(rest)
        self.deposits.add_deposit(
            signer, deposit, token_program, bank, governance_bank, mint, op.amount
        )

    def _withdraw_deposit(
        self, op: WithdrawDeposit, signer: Account, rest: Iterator[Account]
    ) -> None:
        self.deposits.withdraw(signer, next_account(rest), op.amount)

    def _claim_deposit_reward(
        self, op: ClaimDepositReward, signer: Account, rest: Iterator[Account]
    ) -> None:
        self.deposits.claim_reward(signer, next_account(rest))

    def _add_deposit_reward(
        self, op: AddDepositReward, signer: Account, rest: Iterator[Account]
    ) -> None:
        self.deposits.add_reward(
            signer, next_account(rest), op.coin, op.governance, op.token
        )
