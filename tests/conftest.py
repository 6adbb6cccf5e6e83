"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from types import SimpleNamespace
from typing import Callable

import pytest

from trove_ledger import codec
from trove_ledger.config import FeeConfig, ProtocolConfig, RentConfig
from trove_ledger.host import Account, InMemoryTokenProgram, RentSchedule
from trove_ledger.host.runtime import LedgerHost
from trove_ledger.instruction import Operation, encode_operation
from trove_ledger.models import Deposit, Trove
from trove_ledger.oracles import FixedRatePriceSource
from trove_ledger.processor import Processor


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------


@pytest.fixture()
def keys() -> SimpleNamespace:
    return SimpleNamespace(
        alice=bytes([1]) * 32,
        bob=bytes([2]) * 32,
        system=bytes([9]) * 32,
        token_program=bytes([7]) * 32,
        mint=bytes([5]) * 32,
        alice_bank=bytes([11]) * 32,
        alice_governance_bank=bytes([12]) * 32,
        trove=bytes([20]) * 32,
        deposit=bytes([21]) * 32,
        escrow=bytes([22]) * 32,
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fee_config() -> FeeConfig:
    return FeeConfig(
        origination_charge=10,
        deposit_fee_pct=4,
        team_fee_pct=1,
        min_collateral_ratio=1.10,
    )


@pytest.fixture()
def protocol_config(keys: SimpleNamespace, fee_config: FeeConfig) -> ProtocolConfig:
    return ProtocolConfig(
        privileged_identity=keys.system,
        token_program_id=keys.token_program,
        token_denomination=1000,
        fees=fee_config,
    )


@pytest.fixture()
def unit_price() -> FixedRatePriceSource:
    """One native unit is worth exactly one reference unit."""
    return FixedRatePriceSource(rate=1.0, native_decimals=0)


@pytest.fixture()
def rent() -> RentSchedule:
    # Minimum balance = 128 + data length
    return RentSchedule(RentConfig(lamports_per_byte_year=1, exemption_threshold_years=1.0))


# ---------------------------------------------------------------------------
# Host fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def token_program(keys: SimpleNamespace) -> InMemoryTokenProgram:
    program = InMemoryTokenProgram(keys.token_program)
    program.create_account(keys.alice_bank, keys.mint, keys.alice, amount=1_000_000)
    program.create_account(keys.alice_governance_bank, bytes([6]) * 32, keys.alice)
    return program


@pytest.fixture()
def processor(
    protocol_config: ProtocolConfig,
    unit_price: FixedRatePriceSource,
    rent: RentSchedule,
    token_program: InMemoryTokenProgram,
) -> Processor:
    return Processor(protocol_config, unit_price, rent, token_program)


@pytest.fixture()
def host(
    keys: SimpleNamespace, processor: Processor, token_program: InMemoryTokenProgram
) -> LedgerHost:
    host = LedgerHost(processor, token_program)
    host.add_account(Account(key=keys.alice, balance=500))
    host.add_account(Account(key=keys.bob, balance=500))
    host.add_account(Account(key=keys.system, balance=0))
    host.add_account(Account.sized(keys.trove, codec.TROVE_LEN, balance=1000))
    host.add_account(Account.sized(keys.deposit, codec.DEPOSIT_LEN, balance=1000))
    host.add_account(Account(key=keys.escrow, balance=0))
    for key in (keys.token_program, keys.mint, keys.alice_bank, keys.alice_governance_bank):
        host.add_account(Account(key=key))
    return host


@pytest.fixture()
def submit(host: LedgerHost) -> Callable[..., Operation]:
    """Encode and submit an operation; the first key signs unless told otherwise."""

    def _submit(op: Operation, *account_keys: bytes, signers: tuple[bytes, ...] | None = None):
        if signers is None:
            signers = account_keys[:1]
        return host.submit(encode_operation(op), list(account_keys), signers)

    return _submit


@pytest.fixture()
def read_trove(host: LedgerHost, keys: SimpleNamespace) -> Callable[[], Trove]:
    return lambda: codec.unpack_trove(host.get(keys.trove).data)


@pytest.fixture()
def read_deposit(host: LedgerHost, keys: SimpleNamespace) -> Callable[[], Deposit]:
    return lambda: codec.unpack_deposit(host.get(keys.deposit).data)


# ---------------------------------------------------------------------------
# Sample records
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_trove(keys: SimpleNamespace) -> Trove:
    return Trove(
        initialized=True,
        received=True,
        liquidated=False,
        borrow_amount=1000,
        collateral_amount=20_000_000_200,
        team_fee=8,
        depositor_fee=32,
        amount_to_close=800,
        owner=keys.alice,
    )


@pytest.fixture()
def sample_deposit(keys: SimpleNamespace) -> Deposit:
    return Deposit(
        initialized=True,
        token_amount=100,
        reward_token_amount=3,
        reward_governance_token_amount=7,
        reward_coin_amount=5,
        bank=keys.alice_bank,
        governance_bank=keys.alice_governance_bank,
        owner=keys.alice,
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    protocol:
      privileged_identity: "0x0909090909090909090909090909090909090909090909090909090909090909"
      token_program_id: "0707070707070707070707070707070707070707070707070707070707070707"
      token_denomination: 1000
    fees:
      origination_charge: 10
      deposit_fee_pct: 4
      team_fee_pct: 1
      min_collateral_ratio: 1.10
    price_source:
      provider: fixed
      fixed:
        rate: 1.0
        native_decimals: 0
      pyth:
        hermes_url: "https://hermes.example.com"
        feed_id: "0xabc"
    rent:
      lamports_per_byte_year: 1
      exemption_threshold_years: 1.0
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


@pytest.fixture()
def lifecycle_scenario_path() -> Path:
    return Path(__file__).resolve().parent.parent / "scenarios" / "lifecycle.yaml"
