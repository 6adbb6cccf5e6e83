"""Authorization guard: which identity may submit which operation."""
from __future__ import annotations

import logging
from enum import Enum

from .errors import MissingSignatureError, NotOwnerError
from .host.accounts import Account
from .instruction import OperationTag
from .models import identity_to_str

logger = logging.getLogger(__name__)


class AuthRule(Enum):
    # Any signer; the record owner is checked after load
    OWNER = "owner"
    PRIVILEGED = "privileged"
    SIGNER = "signer"


POLICY: dict[OperationTag, AuthRule] = {
    OperationTag.BORROW: AuthRule.SIGNER,
    OperationTag.CLOSE_TROVE: AuthRule.OWNER,
    OperationTag.LIQUIDATE_TROVE: AuthRule.PRIVILEGED,
    OperationTag.WITHDRAW_COLLATERAL: AuthRule.OWNER,
    OperationTag.TOP_UP_COLLATERAL: AuthRule.OWNER,
    # Unlike WITHDRAW_COLLATERAL: no owner check, no collateral re-check.
    OperationTag.REDEEM_COLLATERAL: AuthRule.SIGNER,
    OperationTag.ADD_DEPOSIT: AuthRule.SIGNER,
    OperationTag.WITHDRAW_DEPOSIT: AuthRule.PRIVILEGED,
    OperationTag.CLAIM_DEPOSIT_REWARD: AuthRule.PRIVILEGED,
    OperationTag.RECEIVE_TROVE: AuthRule.PRIVILEGED,
    OperationTag.ADD_DEPOSIT_REWARD: AuthRule.PRIVILEGED,
}


def require_signer(account: Account) -> None:
    if not account.is_signer:
        raise MissingSignatureError(
            f"Account {identity_to_str(account.key)} did not sign"
        )


def require_privileged(account: Account, privileged_identity: bytes) -> None:
    require_signer(account)
    if account.key != privileged_identity:
        raise MissingSignatureError(
            f"Account {identity_to_str(account.key)} is not the privileged identity"
        )


def require_owner(account: Account, owner: bytes) -> None:
    require_signer(account)
    if account.key != owner:
        raise NotOwnerError(
            f"Account {identity_to_str(account.key)} does not own this record"
        )


def authorize(tag: OperationTag, signer: Account, privileged_identity: bytes) -> None:
    """Apply the pre-load part of the policy for ``tag``.

    ``OWNER`` operations only need a signature here; the ledgers compare it
    with the record owner once the record is loaded.
    """
    rule = POLICY[tag]
    if rule is AuthRule.PRIVILEGED:
        require_privileged(signer, privileged_identity)
    else:
        require_signer(signer)
    logger.debug("Authorized %s under rule %s", tag.name, rule.value)
