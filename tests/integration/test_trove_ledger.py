"""Integration tests for the trove lifecycle through the transactional host."""
from __future__ import annotations

from types import SimpleNamespace
from typing import Callable

import pytest

from trove_ledger import codec
from trove_ledger.errors import (
    AlreadyInitializedError,
    AlreadyLiquidatedError,
    AmountMismatchError,
    AmountOverflowError,
    InvalidCollateralError,
    MissingSignatureError,
    NotInitializedError,
    NotOwnerError,
    NotReceivedError,
    NotRentExemptError,
    TokenProgramError,
)
from trove_ledger.host import InMemoryTokenProgram
from trove_ledger.host.runtime import LedgerHost
from trove_ledger.instruction import (
    Borrow,
    CloseTrove,
    LiquidateTrove,
    ReceiveTrove,
    RedeemCollateral,
    TopUpCollateral,
    WithdrawCollateral,
)
from trove_ledger.models import Trove


@pytest.fixture()
def opened(submit: Callable, keys: SimpleNamespace) -> None:
    submit(Borrow(borrow_amount=100, collateral_amount=120), keys.alice, keys.trove)


class TestBorrow:
    def test_opens_trove(
        self, submit: Callable, keys: SimpleNamespace, read_trove: Callable[[], Trove]
    ) -> None:
        submit(Borrow(borrow_amount=100, collateral_amount=120), keys.alice, keys.trove)
        trove = read_trove()
        assert trove.initialized
        assert not trove.received
        assert not trove.liquidated
        assert trove.borrow_amount == 100
        assert trove.collateral_amount == 120
        assert trove.amount_to_close == 90
        assert trove.depositor_fee == 3
        assert trove.team_fee == 0
        assert trove.owner == keys.alice

    def test_insufficient_collateral(
        self, submit: Callable, keys: SimpleNamespace, read_trove: Callable[[], Trove]
    ) -> None:
        with pytest.raises(InvalidCollateralError):
            submit(Borrow(borrow_amount=100, collateral_amount=119), keys.alice, keys.trove)
        assert read_trove() == Trove()

    def test_second_borrow_rejected(
        self, opened: None, submit: Callable, keys: SimpleNamespace
    ) -> None:
        with pytest.raises(AlreadyInitializedError):
            submit(Borrow(borrow_amount=100, collateral_amount=500), keys.alice, keys.trove)

    def test_not_rent_exempt(
        self, host: LedgerHost, submit: Callable, keys: SimpleNamespace
    ) -> None:
        host.get(keys.trove).balance = 202
        with pytest.raises(NotRentExemptError):
            submit(Borrow(borrow_amount=100, collateral_amount=120), keys.alice, keys.trove)

    def test_gross_below_charge(self, submit: Callable, keys: SimpleNamespace) -> None:
        with pytest.raises(AmountOverflowError):
            submit(Borrow(borrow_amount=5, collateral_amount=120), keys.alice, keys.trove)

    def test_requires_signature(self, submit: Callable, keys: SimpleNamespace) -> None:
        with pytest.raises(MissingSignatureError):
            submit(
                Borrow(borrow_amount=100, collateral_amount=120),
                keys.alice, keys.trove, signers=(),
            )


class TestCollateralChanges:
    def test_withdraw_within_ratio(
        self, opened: None, submit: Callable, keys: SimpleNamespace, read_trove: Callable
    ) -> None:
        submit(WithdrawCollateral(amount=0), keys.alice, keys.trove)
        assert read_trove().collateral_amount == 120

    def test_withdraw_breaking_ratio_rejected(
        self, opened: None, submit: Callable, keys: SimpleNamespace, read_trove: Callable
    ) -> None:
        before = read_trove()
        with pytest.raises(InvalidCollateralError):
            submit(WithdrawCollateral(amount=1), keys.alice, keys.trove)
        assert read_trove() == before

    def test_withdraw_by_non_owner(
        self, opened: None, submit: Callable, keys: SimpleNamespace
    ) -> None:
        with pytest.raises(NotOwnerError):
            submit(WithdrawCollateral(amount=1), keys.bob, keys.trove)

    def test_top_up_then_withdraw(
        self,
        opened: None,
        host: LedgerHost,
        submit: Callable,
        keys: SimpleNamespace,
        read_trove: Callable,
    ) -> None:
        host.get(keys.escrow).balance = 30
        submit(TopUpCollateral(amount=30), keys.alice, keys.trove, keys.escrow)
        assert read_trove().collateral_amount == 150

        submit(WithdrawCollateral(amount=30), keys.alice, keys.trove)
        assert read_trove().collateral_amount == 120

    def test_top_up_escrow_mismatch(
        self,
        opened: None,
        host: LedgerHost,
        submit: Callable,
        keys: SimpleNamespace,
        read_trove: Callable,
    ) -> None:
        host.get(keys.escrow).balance = 29
        with pytest.raises(AmountMismatchError):
            submit(TopUpCollateral(amount=30), keys.alice, keys.trove, keys.escrow)
        assert read_trove().collateral_amount == 120

    def test_redeem_by_any_signer(
        self, opened: None, submit: Callable, keys: SimpleNamespace, read_trove: Callable
    ) -> None:
        submit(RedeemCollateral(amount=50), keys.bob, keys.trove)
        trove = read_trove()
        assert trove.collateral_amount == 70
        assert trove.owner == keys.alice

    def test_redeem_underflow(
        self, opened: None, submit: Callable, keys: SimpleNamespace
    ) -> None:
        with pytest.raises(AmountOverflowError):
            submit(RedeemCollateral(amount=121), keys.bob, keys.trove)

    def test_uninitialized_trove(self, submit: Callable, keys: SimpleNamespace) -> None:
        with pytest.raises(NotInitializedError):
            submit(RedeemCollateral(amount=1), keys.bob, keys.trove)


class TestLiquidation:
    def test_requires_received(
        self, opened: None, submit: Callable, keys: SimpleNamespace
    ) -> None:
        with pytest.raises(NotReceivedError):
            submit(LiquidateTrove(), keys.system, keys.trove)

    def test_receive_requires_privileged_signer(
        self, opened: None, submit: Callable, keys: SimpleNamespace
    ) -> None:
        with pytest.raises(MissingSignatureError):
            submit(ReceiveTrove(), keys.alice, keys.trove)

    def test_liquidate_requires_privileged_signer(
        self,
        opened: None,
        host: LedgerHost,
        submit: Callable,
        keys: SimpleNamespace,
        read_trove: Callable,
    ) -> None:
        submit(ReceiveTrove(), keys.system, keys.trove)
        with pytest.raises(MissingSignatureError):
            submit(LiquidateTrove(), keys.alice, keys.trove)
        assert read_trove().initialized
        assert host.get(keys.trove).balance == 1000
        assert host.get(keys.alice).balance == 500

    def test_sweeps_to_privileged(
        self,
        opened: None,
        host: LedgerHost,
        submit: Callable,
        keys: SimpleNamespace,
        read_trove: Callable,
    ) -> None:
        submit(ReceiveTrove(), keys.system, keys.trove)
        assert read_trove().received

        submit(LiquidateTrove(), keys.system, keys.trove)
        assert host.get(keys.system).balance == 1000
        assert host.get(keys.trove).balance == 0
        assert read_trove() == Trove()

    def test_liquidated_trove_is_gone(
        self, opened: None, submit: Callable, keys: SimpleNamespace
    ) -> None:
        submit(ReceiveTrove(), keys.system, keys.trove)
        submit(LiquidateTrove(), keys.system, keys.trove)
        with pytest.raises(NotInitializedError):
            submit(WithdrawCollateral(amount=1), keys.alice, keys.trove)
        with pytest.raises(NotReceivedError):
            submit(LiquidateTrove(), keys.system, keys.trove)

    def test_liquidated_flag_blocks_again(
        self, host: LedgerHost, submit: Callable, keys: SimpleNamespace
    ) -> None:
        codec.store_trove(
            Trove(initialized=True, received=True, liquidated=True, owner=keys.alice),
            host.get(keys.trove).data,
        )
        with pytest.raises(AlreadyLiquidatedError):
            submit(LiquidateTrove(), keys.system, keys.trove)

    @pytest.mark.parametrize(
        "op, signer, extra",
        [
            (CloseTrove(), "alice", ("token_program", "alice_bank", "mint")),
            (TopUpCollateral(amount=0), "alice", ("escrow",)),
            (WithdrawCollateral(amount=0), "alice", ()),
            (RedeemCollateral(amount=0), "bob", ()),
            (ReceiveTrove(), "system", ()),
        ],
    )
    def test_liquidated_trove_is_frozen(
        self,
        host: LedgerHost,
        token_program: InMemoryTokenProgram,
        submit: Callable,
        keys: SimpleNamespace,
        op: object,
        signer: str,
        extra: tuple[str, ...],
    ) -> None:
        codec.store_trove(
            Trove(
                initialized=True,
                liquidated=True,
                borrow_amount=100,
                collateral_amount=120,
                amount_to_close=90,
                owner=keys.alice,
            ),
            host.get(keys.trove).data,
        )
        before = bytes(host.get(keys.trove).data)

        with pytest.raises(AlreadyLiquidatedError):
            submit(
                op,
                getattr(keys, signer), keys.trove, *(getattr(keys, name) for name in extra),
            )

        assert bytes(host.get(keys.trove).data) == before
        assert host.get(keys.trove).balance == 1000
        assert host.get(keys.alice).balance == 500
        assert token_program.balance_of(keys.alice_bank) == 1_000_000
        assert token_program.supply_of(keys.mint) == 1_000_000


class TestClose:
    def _close(self, submit: Callable, keys: SimpleNamespace, signer: bytes) -> None:
        submit(
            CloseTrove(),
            signer, keys.trove, keys.token_program, keys.alice_bank, keys.mint,
        )

    def test_burns_and_returns_balance(
        self,
        opened: None,
        host: LedgerHost,
        token_program: InMemoryTokenProgram,
        submit: Callable,
        keys: SimpleNamespace,
        read_trove: Callable,
    ) -> None:
        self._close(submit, keys, keys.alice)
        assert token_program.balance_of(keys.alice_bank) == 1_000_000 - 90 * 1000
        assert host.get(keys.alice).balance == 1500
        assert host.get(keys.trove).balance == 0
        assert read_trove() == Trove()

    def test_close_by_non_owner(
        self,
        opened: None,
        token_program: InMemoryTokenProgram,
        submit: Callable,
        keys: SimpleNamespace,
    ) -> None:
        with pytest.raises(NotOwnerError):
            self._close(submit, keys, keys.bob)
        assert token_program.balance_of(keys.alice_bank) == 1_000_000

    def test_failed_burn_rolls_back(
        self,
        opened: None,
        host: LedgerHost,
        token_program: InMemoryTokenProgram,
        submit: Callable,
        keys: SimpleNamespace,
        read_trove: Callable,
    ) -> None:
        before = read_trove()
        with pytest.raises(TokenProgramError):
            submit(
                CloseTrove(),
                keys.alice, keys.trove, keys.token_program, keys.alice_governance_bank,
                keys.mint,
            )
        assert read_trove() == before
        assert host.get(keys.alice).balance == 500
        assert host.get(keys.trove).balance == 1000
        assert token_program.balance_of(keys.alice_bank) == 1_000_000
