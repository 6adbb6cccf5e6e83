"""Rent verifier protocol: host minimum-balance check."""
from typing import Protocol


class RentVerifier(Protocol):
    """Abstract interface for the host's minimum-balance rule."""

    def is_exempt(self, balance: int, data_len: int) -> bool: ...
