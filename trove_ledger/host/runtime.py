"""Transactional in-memory host: runs operations all-or-nothing."""
from __future__ import annotations

import logging
from typing import Collection, Sequence

from ..config import AppConfig
from ..errors import LedgerError
from ..instruction import Operation
from ..interfaces import PriceSource
from ..models import identity_to_str
from ..oracles import build_price_source
from ..processor import Processor
from .accounts import Account
from .rent import RentSchedule
from .token_program import InMemoryTokenProgram

logger = logging.getLogger(__name__)


class LedgerHost:
    """Account store plus transaction boundary around the processor.

    Each :meth:`submit` is one transaction: account balances, record data and
    token program state are snapshotted first and restored if the operation
    raises a ``LedgerError``.
    """

    def __init__(self, processor: Processor, token_program: InMemoryTokenProgram) -> None:
        self.processor = processor
        self.token_program = token_program
        self._accounts: dict[bytes, Account] = {}

    def add_account(self, account: Account) -> Account:
        if account.key in self._accounts:
            raise ValueError(f"Account {identity_to_str(account.key)} already exists")
        self._accounts[account.key] = account
        return account

    def get(self, key: bytes) -> Account:
        account = self._accounts.get(key)
        if account is None:
            raise KeyError(f"Unknown account {identity_to_str(key)}")
        return account

    def submit(
        self,
        instruction_data: bytes,
        keys: Sequence[bytes],
        signers: Collection[bytes] = (),
    ) -> Operation:
        """Execute one operation against the stored accounts."""
        accounts = [self.get(key) for key in keys]
        snapshot = {
            key: (account.balance, bytes(account.data))
            for key, account in self._accounts.items()
        }
        token_snapshot = self.token_program.snapshot()

        for account in accounts:
            account.is_signer = account.key in signers

        try:
            return self.processor.process(instruction_data, accounts)
        except LedgerError:
            self._restore(snapshot)
            self.token_program.restore(token_snapshot)
            logger.debug("Transaction rolled back")
            raise
        finally:
            for account in accounts:
                account.is_signer = False

    def _restore(self, snapshot: dict[bytes, tuple[int, bytes]]) -> None:
        for key, (balance, data) in snapshot.items():
            account = self._accounts[key]
            account.balance = balance
            account.data[:] = data


def build_host(config: AppConfig, price_source: PriceSource | None = None) -> LedgerHost:
    """Wire a host, processor and collaborators from configuration."""
    token_program = InMemoryTokenProgram(config.protocol.token_program_id)
    processor = Processor(
        config.protocol,
        price_source or build_price_source(config.price_source),
        RentSchedule(config.rent),
        token_program,
    )
    return LedgerHost(processor, token_program)
