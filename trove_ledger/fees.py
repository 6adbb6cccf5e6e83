"""Pure fee and collateral arithmetic: no I/O, no state."""
from __future__ import annotations

import math

from .config import FeeConfig
from .errors import AmountOverflowError
from .interfaces.price_source import PriceSource

U64_MAX = 2**64 - 1


def checked_add(a: int, b: int) -> int:
    """Add two u64 values, raising on overflow."""
    result = a + b
    if result > U64_MAX:
        raise AmountOverflowError(f"u64 overflow: {a} + {b}")
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract two u64 values, raising on underflow."""
    if b > a:
        raise AmountOverflowError(f"u64 underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int) -> int:
    """Multiply two u64 values, raising on overflow."""
    result = a * b
    if result > U64_MAX:
        raise AmountOverflowError(f"u64 overflow: {a} * {b}")
    return result


def debt_amount(gross: int, fees: FeeConfig) -> int:
    """Debt net of the fixed origination charge."""
    return checked_sub(gross, fees.origination_charge)


def depositor_fee(gross: int, fees: FeeConfig) -> int:
    return debt_amount(gross, fees) * fees.deposit_fee_pct // 100


def team_fee(gross: int, fees: FeeConfig) -> int:
    return debt_amount(gross, fees) * fees.team_fee_pct // 100


def net_disbursed(gross: int, fees: FeeConfig) -> int:
    """Amount actually paid out to the borrower after both fees."""
    return debt_amount(gross, fees) - depositor_fee(gross, fees) - team_fee(gross, fees)


def collateral_ratio(
    debt: int, collateral: int, fees: FeeConfig, price_source: PriceSource
) -> float:
    """Converted collateral value divided by raw debt.

    The origination charge is taken out of the collateral *before* the
    conversion, and the division uses the gross debt:

        ratio = price(collateral - origination_charge) / debt

    Returns 0.0 when the collateral does not even cover the charge, and NaN
    for a zero debt with zero value.
    """
    if collateral < fees.origination_charge:
        return 0.0
    value = price_source.to_reference_value(collateral - fees.origination_charge)
    if debt == 0:
        return math.inf if value > 0 else math.nan
    return value / debt


def check_collateral(
    debt: int, collateral: int, fees: FeeConfig, price_source: PriceSource
) -> bool:
    """True when the position meets the minimum collateral ratio.

    A price source without a price raises ``PriceUnavailableError``, which
    aborts the operation like any other ledger error.
    """
    ratio = collateral_ratio(debt, collateral, fees, price_source)
    # NaN compares False
    return ratio >= fees.min_collateral_ratio
