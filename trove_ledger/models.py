"""Data models: persisted records are frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass

IDENTITY_LEN = 32
ZERO_IDENTITY = bytes(IDENTITY_LEN)


def identity_from_str(value: str) -> bytes:
    """Parse a 32-byte identity from a hex string (optional ``0x`` prefix)."""
    text = value.strip()
    if text.lower().startswith("0x"):
        text = text[2:]
    try:
        raw = bytes.fromhex(text)
    except ValueError as e:
        raise ValueError(f"Invalid identity '{value}': {e}") from e
    if len(raw) != IDENTITY_LEN:
        raise ValueError(
            f"Invalid identity '{value}': expected {IDENTITY_LEN} bytes, got {len(raw)}"
        )
    return raw


def identity_to_str(identity: bytes) -> str:
    return "0x" + identity.hex()


@dataclass(frozen=True)
class Trove:
    """Individually collateralized debt position."""

    initialized: bool = False
    received: bool = False
    liquidated: bool = False
    borrow_amount: int = 0
    collateral_amount: int = 0
    team_fee: int = 0
    depositor_fee: int = 0
    amount_to_close: int = 0
    owner: bytes = ZERO_IDENTITY


@dataclass(frozen=True)
class Deposit:
    """Stability pool deposit with accrued rewards."""

    initialized: bool = False
    token_amount: int = 0
    reward_token_amount: int = 0
    reward_governance_token_amount: int = 0
    reward_coin_amount: int = 0
    bank: bytes = ZERO_IDENTITY
    governance_bank: bytes = ZERO_IDENTITY
    owner: bytes = ZERO_IDENTITY
