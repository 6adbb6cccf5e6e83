"""In-memory stand-ins for the hosting ledger platform."""
from .accounts import Account
from .rent import RentSchedule
from .token_program import InMemoryTokenProgram

__all__ = ["Account", "InMemoryTokenProgram", "RentSchedule"]
