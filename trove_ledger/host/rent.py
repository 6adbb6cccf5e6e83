"""Minimum-balance ("rent-exemption") schedule."""
from __future__ import annotations

from ..config import RentConfig

# Bytes charged per account on top of its data
ACCOUNT_STORAGE_OVERHEAD = 128


class RentSchedule:
    """Host rule: an account must hold enough to pay for its own storage."""

    def __init__(self, config: RentConfig | None = None) -> None:
        config = config or RentConfig()
        self.lamports_per_byte_year = config.lamports_per_byte_year
        self.exemption_threshold_years = config.exemption_threshold_years

    def minimum_balance(self, data_len: int) -> int:
        bytes_ = ACCOUNT_STORAGE_OVERHEAD + data_len
        return int(bytes_ * self.lamports_per_byte_year * self.exemption_threshold_years)

    def is_exempt(self, balance: int, data_len: int) -> bool:
        return balance >= self.minimum_balance(data_len)
