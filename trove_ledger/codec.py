"""Fixed-layout binary codec for persisted records: no I/O.

All integers are little-endian u64, identities are raw 32-byte strings and
every flag occupies one byte that must be 0 or 1.

Trove (75 bytes)::

    [0] initialized  [1] received  [2] liquidated
    [3:11] borrow_amount  [11:19] collateral_amount  [19:27] team_fee
    [27:35] depositor_fee  [35:43] amount_to_close  [43:75] owner

Deposit (129 bytes)::

    [0] initialized  [1:9] token_amount  [9:17] reward_token_amount
    [17:25] reward_governance_token_amount  [25:33] reward_coin_amount
    [33:65] bank  [65:97] governance_bank  [97:129] owner
"""
from __future__ import annotations

import struct

from .errors import InvalidRecordDataError
from .models import IDENTITY_LEN, Deposit, Trove

_TROVE = struct.Struct("<BBBQQQQQ32s")
_DEPOSIT = struct.Struct("<BQQQQ32s32s32s")

TROVE_LEN = _TROVE.size
DEPOSIT_LEN = _DEPOSIT.size


def _flag(value: int, name: str) -> bool:
    if value == 0:
        return False
    if value == 1:
        return True
    raise InvalidRecordDataError(f"Invalid {name} flag byte: {value}")


def _identity(value: bytes, name: str) -> bytes:
    if len(value) != IDENTITY_LEN:
        raise InvalidRecordDataError(
            f"{name} must be {IDENTITY_LEN} bytes, got {len(value)}"
        )
    return value


def _check_len(data: bytes | bytearray | memoryview, expected: int, kind: str) -> None:
    if len(data) < expected:
        raise InvalidRecordDataError(
            f"{kind} buffer too short: {len(data)} < {expected} bytes"
        )


def unpack_trove(data: bytes | bytearray | memoryview) -> Trove:
    _check_len(data, TROVE_LEN, "Trove")
    (
        initialized,
        received,
        liquidated,
        borrow_amount,
        collateral_amount,
        team_fee,
        depositor_fee,
        amount_to_close,
        owner,
    ) = _TROVE.unpack_from(data)
    return Trove(
        initialized=_flag(initialized, "initialized"),
        received=_flag(received, "received"),
        liquidated=_flag(liquidated, "liquidated"),
        borrow_amount=borrow_amount,
        collateral_amount=collateral_amount,
        team_fee=team_fee,
        depositor_fee=depositor_fee,
        amount_to_close=amount_to_close,
        owner=owner,
    )


def pack_trove(trove: Trove) -> bytes:
    try:
        return _TROVE.pack(
            int(trove.initialized),
            int(trove.received),
            int(trove.liquidated),
            trove.borrow_amount,
            trove.collateral_amount,
            trove.team_fee,
            trove.depositor_fee,
            trove.amount_to_close,
            _identity(trove.owner, "owner"),
        )
    except struct.error as e:
        raise InvalidRecordDataError(f"Trove cannot be packed: {e}") from e


def unpack_deposit(data: bytes | bytearray | memoryview) -> Deposit:
    _check_len(data, DEPOSIT_LEN, "Deposit")
    (
        initialized,
        token_amount,
        reward_token_amount,
        reward_governance_token_amount,
        reward_coin_amount,
        bank,
        governance_bank,
        owner,
    ) = _DEPOSIT.unpack_from(data)
    return Deposit(
        initialized=_flag(initialized, "initialized"),
        token_amount=token_amount,
        reward_token_amount=reward_token_amount,
        reward_governance_token_amount=reward_governance_token_amount,
        reward_coin_amount=reward_coin_amount,
        bank=bank,
        governance_bank=governance_bank,
        owner=owner,
    )


def pack_deposit(deposit: Deposit) -> bytes:
    try:
        return _DEPOSIT.pack(
            int(deposit.initialized),
            deposit.token_amount,
            deposit.reward_token_amount,
            deposit.reward_governance_token_amount,
            deposit.reward_coin_amount,
            _identity(deposit.bank, "bank"),
            _identity(deposit.governance_bank, "governance_bank"),
            _identity(deposit.owner, "owner"),
        )
    except struct.error as e:
        raise InvalidRecordDataError(f"Deposit cannot be packed: {e}") from e


def store_trove(trove: Trove, dst: bytearray) -> None:
    """Write a trove into the first ``TROVE_LEN`` bytes of ``dst``."""
    _check_len(dst, TROVE_LEN, "Trove")
    dst[:TROVE_LEN] = pack_trove(trove)


def store_deposit(deposit: Deposit, dst: bytearray) -> None:
    """Write a deposit into the first ``DEPOSIT_LEN`` bytes of ``dst``."""
    _check_len(dst, DEPOSIT_LEN, "Deposit")
    dst[:DEPOSIT_LEN] = pack_deposit(deposit)
