"""Fixed linear price source."""
from __future__ import annotations


class FixedRatePriceSource:
    """Values native units at a constant reference price per whole coin.

    value = float(native_amount) / float(10**native_decimals) * rate
    """

    def __init__(self, rate: float = 70.0, native_decimals: int = 9) -> None:
        self.rate = rate
        self.native_decimals = native_decimals

    def to_reference_value(self, native_amount: int) -> float:
        return float(native_amount) / float(10**self.native_decimals) * self.rate
