"""Scenario replay: runs a YAML list of operations against the in-memory host."""
from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .. import codec
from ..config import AppConfig
from ..errors import LedgerError
from ..host.accounts import Account
from ..host.runtime import LedgerHost, build_host
from ..instruction import OPERATION_TYPES, encode_operation
from ..interfaces import PriceSource
from ..models import Deposit, Trove

logger = logging.getLogger(__name__)

PRIVILEGED_NAME = "system"
TOKEN_PROGRAM_NAME = "token_program"

_RECORD_SIZES = {"trove": codec.TROVE_LEN, "deposit": codec.DEPOSIT_LEN}


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


OPERATIONS_BY_NAME: dict[str, type] = {_snake(cls.__name__): cls for cls in OPERATION_TYPES.values()}


@dataclass(frozen=True)
class StepResult:
    index: int
    op: str
    error: str | None = None
    expected_error: str | None = None

    @property
    def passed(self) -> bool:
        return self.error == self.expected_error


@dataclass(frozen=True)
class ScenarioReport:
    steps: tuple[StepResult, ...] = ()
    troves: dict[str, Trove] = field(default_factory=dict)
    deposits: dict[str, Deposit] = field(default_factory=dict)
    balances: dict[str, int] = field(default_factory=dict)
    token_balances: dict[str, int] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return all(step.passed for step in self.steps)


class ScenarioRunner:
    """Build accounts from a scenario and replay its operations in order."""

    def __init__(
        self,
        config: AppConfig,
        scenario: dict[str, Any],
        price_source: PriceSource | None = None,
    ) -> None:
        self._config = config
        self._scenario = scenario
        self._host: LedgerHost = build_host(config, price_source)
        self._records: dict[str, str] = {}
        self._token_accounts: list[str] = []
        self._account_names: list[str] = []

    @classmethod
    def from_file(
        cls, config: AppConfig, path: str | Path, price_source: PriceSource | None = None
    ) -> "ScenarioRunner":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Scenario file not found: {path}")
        with open(path) as f:
            scenario = yaml.safe_load(f) or {}
        return cls(config, scenario, price_source)

    @property
    def host(self) -> LedgerHost:
        return self._host

    def key_for(self, name: str) -> bytes:
        """Deterministic 32-byte identity for an account name."""
        if name == PRIVILEGED_NAME:
            return self._config.protocol.privileged_identity
        if name == TOKEN_PROGRAM_NAME:
            return self._config.protocol.token_program_id
        return hashlib.sha256(name.encode()).digest()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _setup_accounts(self) -> None:
        raw_accounts = list(self._scenario.get("accounts", []))
        names = {a.get("name") for a in raw_accounts}
        for implicit in (PRIVILEGED_NAME, TOKEN_PROGRAM_NAME):
            if implicit not in names:
                raw_accounts.append({"name": implicit})

        for raw in raw_accounts:
            name = raw.get("name")
            if not name:
                raise ValueError("Scenario account without a name")

            record = raw.get("record")
            size = int(raw.get("size", _RECORD_SIZES.get(record, 0)))
            if record is not None and record not in _RECORD_SIZES:
                raise ValueError(f"Account '{name}' has unknown record kind '{record}'")

            self._host.add_account(
                Account.sized(self.key_for(name), size, balance=int(raw.get("balance", 0)))
            )
            self._account_names.append(name)
            if record:
                self._records[name] = record

        # Token accounts need their mint and authority to exist first
        for raw in raw_accounts:
            token = raw.get("token")
            if not token:
                continue
            self._host.token_program.create_account(
                self.key_for(raw["name"]),
                mint=self.key_for(token["mint"]),
                authority=self.key_for(token["authority"]),
                amount=int(token.get("amount", 0)),
            )
            self._token_accounts.append(raw["name"])

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def _build_operation(self, index: int, raw: dict[str, Any]) -> bytes:
        name = raw.get("op", "")
        op_type = OPERATIONS_BY_NAME.get(name)
        if op_type is None:
            raise ValueError(f"Unknown scenario operation '{name}'")
        args = {k: int(v) for k, v in (raw.get("args") or {}).items()}
        try:
            op = op_type(**args)
        except TypeError as e:
            raise ValueError(f"Step {index} ({name}): bad arguments: {e}") from e
        return encode_operation(op)

    def run(self) -> ScenarioReport:
        self._setup_accounts()
        steps: list[StepResult] = []

        for index, raw in enumerate(self._scenario.get("operations", [])):
            data = self._build_operation(index, raw)
            keys = [self.key_for(n) for n in raw.get("accounts", [])]
            signers = [self.key_for(n) for n in _as_list(raw.get("signer"))]
            expected = raw.get("expect_error")

            error: str | None = None
            try:
                self._host.submit(data, keys, signers)
            except LedgerError as e:
                error = type(e).__name__

            step = StepResult(index=index, op=raw["op"], error=error, expected_error=expected)
            if not step.passed:
                logger.error(
                    "Step %d (%s): expected %s, got %s",
                    index, step.op, expected or "success", error or "success",
                )
            steps.append(step)

        return self._report(steps)

    def _report(self, steps: list[StepResult]) -> ScenarioReport:
        troves: dict[str, Trove] = {}
        deposits: dict[str, Deposit] = {}
        for name, record in self._records.items():
            account = self._host.get(self.key_for(name))
            if record == "trove":
                troves[name] = codec.unpack_trove(account.data)
            else:
                deposits[name] = codec.unpack_deposit(account.data)

        balances = {
            name: self._host.get(self.key_for(name)).balance
            for name in self._account_names
        }
        token_balances = {
            name: self._host.token_program.balance_of(self.key_for(name))
            for name in self._token_accounts
        }
        return ScenarioReport(
            steps=tuple(steps),
            troves=troves,
            deposits=deposits,
            balances=balances,
            token_balances=token_balances,
        )


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)
