"""Price source protocol: native-unit to reference-currency conversion."""
from typing import Protocol


class PriceSource(Protocol):
    """Abstract interface for valuing native collateral."""

    def to_reference_value(self, native_amount: int) -> float: ...
