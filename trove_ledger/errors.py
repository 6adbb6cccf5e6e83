"""Ledger error taxonomy: every error aborts the whole operation."""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for every failure raised while executing an operation."""


# ---------------------------------------------------------------------------
# Decode errors
# ---------------------------------------------------------------------------


class DecodeError(LedgerError):
    pass


class UnknownOperationError(DecodeError):
    def __init__(self, tag: int) -> None:
        super().__init__(f"Unknown operation tag: {tag}")
        self.tag = tag


class TruncatedArgumentsError(DecodeError):
    pass


class InvalidRecordDataError(DecodeError):
    pass


class NotEnoughAccountsError(DecodeError):
    pass


# ---------------------------------------------------------------------------
# Authorization errors
# ---------------------------------------------------------------------------


class AuthorizationError(LedgerError):
    pass


class MissingSignatureError(AuthorizationError):
    pass


class NotOwnerError(AuthorizationError):
    pass


# ---------------------------------------------------------------------------
# State errors
# ---------------------------------------------------------------------------


class StateError(LedgerError):
    pass


class NotInitializedError(StateError):
    pass


class AlreadyInitializedError(StateError):
    pass


class AlreadyLiquidatedError(StateError):
    pass


class NotReceivedError(StateError):
    pass


# ---------------------------------------------------------------------------
# Amount errors
# ---------------------------------------------------------------------------


class AmountError(LedgerError):
    pass


class InvalidCollateralError(AmountError):
    pass


class InsufficientLiquidityError(AmountError):
    pass


class AmountMismatchError(AmountError):
    pass


class AmountOverflowError(AmountError):
    pass


# ---------------------------------------------------------------------------
# Preconditions and collaborators
# ---------------------------------------------------------------------------


class PreconditionError(LedgerError):
    pass


class NotRentExemptError(PreconditionError):
    pass


class TokenProgramError(LedgerError):
    """The external token program rejected a call."""


class PriceUnavailableError(LedgerError):
    """No reference price is available for collateral conversion."""
