"""Unit tests for the authorization guard."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from trove_ledger.errors import MissingSignatureError, NotOwnerError
from trove_ledger.guard import (
    POLICY,
    AuthRule,
    authorize,
    require_owner,
    require_privileged,
    require_signer,
)
from trove_ledger.host import Account
from trove_ledger.instruction import OperationTag


class TestPolicy:
    def test_every_operation_has_a_rule(self) -> None:
        assert set(POLICY) == set(OperationTag)

    def test_redeem_only_needs_a_signer(self) -> None:
        assert POLICY[OperationTag.REDEEM_COLLATERAL] is AuthRule.SIGNER
        assert POLICY[OperationTag.WITHDRAW_COLLATERAL] is AuthRule.OWNER

    def test_bookkeeping_is_privileged(self) -> None:
        for tag in (
            OperationTag.LIQUIDATE_TROVE,
            OperationTag.RECEIVE_TROVE,
            OperationTag.WITHDRAW_DEPOSIT,
            OperationTag.CLAIM_DEPOSIT_REWARD,
            OperationTag.ADD_DEPOSIT_REWARD,
        ):
            assert POLICY[tag] is AuthRule.PRIVILEGED


class TestChecks:
    def test_unsigned_account_rejected(self, keys: SimpleNamespace) -> None:
        with pytest.raises(MissingSignatureError):
            require_signer(Account(key=keys.alice))

    def test_privileged_requires_signature(self, keys: SimpleNamespace) -> None:
        with pytest.raises(MissingSignatureError):
            require_privileged(Account(key=keys.system), keys.system)

    def test_privileged_requires_identity(self, keys: SimpleNamespace) -> None:
        with pytest.raises(MissingSignatureError):
            require_privileged(Account(key=keys.alice, is_signer=True), keys.system)

    def test_owner_mismatch(self, keys: SimpleNamespace) -> None:
        with pytest.raises(NotOwnerError):
            require_owner(Account(key=keys.bob, is_signer=True), keys.alice)

    def test_owner_match(self, keys: SimpleNamespace) -> None:
        require_owner(Account(key=keys.alice, is_signer=True), keys.alice)

    def test_authorize_owner_rule_only_needs_signature(self, keys: SimpleNamespace) -> None:
        # Owner comparison happens in the ledger, after the record is loaded
        signer = Account(key=keys.bob, is_signer=True)
        assert authorize(OperationTag.CLOSE_TROVE, signer, keys.system) is None

    def test_authorize_owner_rule_rejects_unsigned(self, keys: SimpleNamespace) -> None:
        with pytest.raises(MissingSignatureError):
            authorize(OperationTag.CLOSE_TROVE, Account(key=keys.alice), keys.system)

    def test_authorize_privileged_rejects_other_signer(self, keys: SimpleNamespace) -> None:
        signer = Account(key=keys.alice, is_signer=True)
        with pytest.raises(MissingSignatureError):
            authorize(OperationTag.RECEIVE_TROVE, signer, keys.system)
