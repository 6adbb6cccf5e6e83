"""Ledger state machine for a collateralized-debt protocol with a stability pool."""

__version__ = "0.1.0"
