"""Protocol interfaces for the ledger's external collaborators."""
from .price_source import PriceSource
from .rent import RentVerifier
from .token_program import TokenProgram

__all__ = ["PriceSource", "RentVerifier", "TokenProgram"]
