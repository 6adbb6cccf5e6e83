"""Command-line interface for the trove ledger."""
from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import asdict, fields
from typing import Any

from . import codec
from .config import load_config
from .errors import LedgerError
from .instruction import decode_operation
from .logging_setup import configure_logging
from .models import Deposit, Trove, identity_to_str
from .oracles import PythPriceSource, build_price_source
from .services import ScenarioReport, ScenarioRunner


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="trove-ledger",
        description="Collateralized-debt ledger tools",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    decode_parser = sub.add_parser("decode-op", help="Decode operation bytes (hex)")
    decode_parser.add_argument("data", help="Hex-encoded operation")

    inspect_parser = sub.add_parser("inspect", help="Decode a persisted record (hex)")
    inspect_parser.add_argument("kind", choices=["trove", "deposit"])
    inspect_parser.add_argument("data", help="Hex-encoded record buffer")

    run_parser = sub.add_parser("run", help="Replay a YAML scenario")
    run_parser.add_argument("scenario", help="Path to scenario YAML")
    run_parser.add_argument(
        "--live-price",
        action="store_true",
        help="Fetch the collateral price from Pyth before replaying",
    )

    return parser


def _format_value(value: Any) -> str:
    if isinstance(value, bytes):
        return identity_to_str(value)
    return str(value)


def format_record(record: Trove | Deposit) -> str:
    width = max(len(f.name) for f in fields(record))
    return "\n".join(
        f"{name.ljust(width)}  {_format_value(value)}"
        for name, value in asdict(record).items()
    )


def format_report(report: ScenarioReport) -> str:
    lines: list[str] = []
    for step in report.steps:
        outcome = step.error or "ok"
        mark = "✅" if step.passed else "❌"
        lines.append(f"{mark} #{step.index} {step.op}: {outcome}")

    for name, trove in report.troves.items():
        lines.append(f"\n━━ trove {name} ━━\n{format_record(trove)}")
    for name, deposit in report.deposits.items():
        lines.append(f"\n━━ deposit {name} ━━\n{format_record(deposit)}")

    if report.balances:
        lines.append("\n━━ balances ━━")
        lines.extend(f"{name}: {balance}" for name, balance in report.balances.items())
    if report.token_balances:
        lines.append("\n━━ token balances ━━")
        lines.extend(f"{name}: {amount}" for name, amount in report.token_balances.items())
    return "\n".join(lines)


def _parse_hex(text: str) -> bytes:
    text = text.strip()
    if text.lower().startswith("0x"):
        text = text[2:]
    return bytes.fromhex(text)


def _decode(args: argparse.Namespace) -> int:
    op = decode_operation(_parse_hex(args.data))
    print(f"{type(op).__name__} {asdict(op)}")
    return 0


def _inspect(args: argparse.Namespace) -> int:
    data = _parse_hex(args.data)
    record = codec.unpack_trove(data) if args.kind == "trove" else codec.unpack_deposit(data)
    print(format_record(record))
    return 0


def _run(args: argparse.Namespace) -> int:
    config = load_config(args.config)

    if args.live_price or config.price_source.provider == "pyth":
        price_source = PythPriceSource(config.price_source.pyth)
        if asyncio.run(price_source.refresh()) is None:
            print("Could not fetch a collateral price from Pyth", file=sys.stderr)
            return 1
    else:
        price_source = build_price_source(config.price_source)

    report = ScenarioRunner.from_file(config, args.scenario, price_source).run()
    print(format_report(report))
    return 0 if report.passed else 1


_COMMANDS = {"decode-op": _decode, "inspect": _inspect, "run": _run}


def main(argv: list[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    try:
        code = _COMMANDS[args.command](args)
    except (LedgerError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    sys.exit(code)
