"""Record state machines."""
from .deposits import DepositLedger
from .troves import TroveLedger

__all__ = ["DepositLedger", "TroveLedger"]
