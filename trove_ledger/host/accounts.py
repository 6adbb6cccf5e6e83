"""Host account: a keyed balance plus a data buffer."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from ..errors import NotEnoughAccountsError


@dataclass
class Account:
    """One account as seen by an operation.

    ``balance`` is in native units; ``data`` is the persisted record buffer,
    owned by the host and rewritten in place by the ledgers.
    """

    key: bytes
    balance: int = 0
    data: bytearray = field(default_factory=bytearray)
    is_signer: bool = False

    @classmethod
    def sized(cls, key: bytes, size: int, balance: int = 0) -> "Account":
        """A zero-filled account with room for a ``size``-byte record."""
        return cls(key=key, balance=balance, data=bytearray(size))

    def clear_data(self) -> None:
        self.data[:] = bytes(len(self.data))


def next_account(accounts: Iterator[Account]) -> Account:
    """Take the next positional account of an operation."""
    try:
        return next(accounts)
    except StopIteration:
        raise NotEnoughAccountsError("Not enough accounts for operation") from None
