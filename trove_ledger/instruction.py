"""Operation wire format: one tag byte followed by LE u64 arguments."""
from __future__ import annotations

import struct
from dataclasses import astuple, dataclass, fields
from enum import IntEnum
from typing import Union

from .errors import TruncatedArgumentsError, UnknownOperationError

_U64 = struct.Struct("<Q")


class OperationTag(IntEnum):
    BORROW = 0
    CLOSE_TROVE = 1
    LIQUIDATE_TROVE = 2
    WITHDRAW_COLLATERAL = 3
    TOP_UP_COLLATERAL = 4
    REDEEM_COLLATERAL = 5
    ADD_DEPOSIT = 6
    WITHDRAW_DEPOSIT = 7
    CLAIM_DEPOSIT_REWARD = 8
    RECEIVE_TROVE = 9
    ADD_DEPOSIT_REWARD = 10


@dataclass(frozen=True)
class Borrow:
    """Open a trove.

    Accounts: ``[signer] borrower``, ``[writable] trove``.
    """

    borrow_amount: int
    collateral_amount: int


@dataclass(frozen=True)
class CloseTrove:
    """Repay and close a trove.

    Accounts: ``[signer] owner``, ``[writable] trove``, ``[] token program``,
    ``[writable] source token account``, ``[writable] mint``.
    """


@dataclass(frozen=True)
class LiquidateTrove:
    """Accounts: ``[signer] privileged``, ``[writable] trove``."""


@dataclass(frozen=True)
class WithdrawCollateral:
    """Accounts: ``[signer] owner``, ``[writable] trove``."""

    amount: int


@dataclass(frozen=True)
class TopUpCollateral:
    """Accounts: ``[signer] owner``, ``[writable] trove``, ``[] escrow``."""

    amount: int


@dataclass(frozen=True)
class RedeemCollateral:
    """Accounts: ``[signer] any``, ``[writable] trove``."""

    amount: int


@dataclass(frozen=True)
class AddDeposit:
    """Deposit into the stability pool.

    Accounts: ``[signer] depositor``, ``[writable] deposit``,
    ``[] token program``, ``[writable] bank``, ``[] governance bank``,
    ``[writable] mint``.
    """

    amount: int


@dataclass(frozen=True)
class WithdrawDeposit:
    """Accounts: ``[signer] privileged``, ``[writable] deposit``."""

    amount: int


@dataclass(frozen=True)
class ClaimDepositReward:
    """Accounts: ``[signer] privileged``, ``[writable] deposit``."""


@dataclass(frozen=True)
class ReceiveTrove:
    """Accounts: ``[signer] privileged``, ``[writable] trove``."""


@dataclass(frozen=True)
class AddDepositReward:
    """Accounts: ``[signer] privileged``, ``[writable] deposit``."""

    coin: int
    governance: int
    token: int


Operation = Union[
    Borrow,
    CloseTrove,
    LiquidateTrove,
    WithdrawCollateral,
    TopUpCollateral,
    RedeemCollateral,
    AddDeposit,
    WithdrawDeposit,
    ClaimDepositReward,
    ReceiveTrove,
    AddDepositReward,
]

OPERATION_TYPES: dict[OperationTag, type] = {
    OperationTag.BORROW: Borrow,
    OperationTag.CLOSE_TROVE: CloseTrove,
    OperationTag.LIQUIDATE_TROVE: LiquidateTrove,
    OperationTag.WITHDRAW_COLLATERAL: WithdrawCollateral,
    OperationTag.TOP_UP_COLLATERAL: TopUpCollateral,
    OperationTag.REDEEM_COLLATERAL: RedeemCollateral,
    OperationTag.ADD_DEPOSIT: AddDeposit,
    OperationTag.WITHDRAW_DEPOSIT: WithdrawDeposit,
    OperationTag.CLAIM_DEPOSIT_REWARD: ClaimDepositReward,
    OperationTag.RECEIVE_TROVE: ReceiveTrove,
    OperationTag.ADD_DEPOSIT_REWARD: AddDepositReward,
}

_TAGS: dict[type, OperationTag] = {cls: tag for tag, cls in OPERATION_TYPES.items()}


def tag_of(op: Operation) -> OperationTag:
    return _TAGS[type(op)]


def decode_operation(data: bytes) -> Operation:
    """Decode an operation from its wire bytes.

    Trailing bytes after the declared arguments are ignored.
    """
    if not data:
        raise TruncatedArgumentsError("Empty operation data")

    tag, rest = data[0], data[1:]
    try:
        op_type = OPERATION_TYPES[OperationTag(tag)]
    except ValueError:
        raise UnknownOperationError(tag) from None

    names = [f.name for f in fields(op_type)]
    needed = len(names) * _U64.size
    if len(rest) < needed:
        raise TruncatedArgumentsError(
            f"{op_type.__name__} needs {needed} argument bytes, got {len(rest)}"
        )

    values = [
        _U64.unpack_from(rest, i * _U64.size)[0] for i in range(len(names))
    ]
    return op_type(*values)


def encode_operation(op: Operation) -> bytes:
    """Encode an operation into its wire bytes."""
    out = bytearray([tag_of(op)])
    for value in astuple(op):
        try:
            out += _U64.pack(value)
        except struct.error as e:
            raise ValueError(f"Argument {value!r} is not a u64") from e
    return bytes(out)
