"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import identity_from_str

logger = logging.getLogger(__name__)

# Reference deployment constants
DEFAULT_PRIVILEGED_IDENTITY = bytes.fromhex(
    "f08089b5b5f4b20bca5c29431d1e8e227351f38fafdb3beeae6709f30f7ea1be"
)
DEFAULT_TOKEN_PROGRAM_ID = bytes.fromhex(
    "06ddf6e1d765a193d9cbe146ceeb79ac1cb485ed5f5b37913a8cf5857eff00a9"
)
SOL_USD_FEED_ID = "ef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d"

PRICE_PROVIDERS = ("fixed", "pyth")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeeConfig:
    origination_charge: int = 200
    deposit_fee_pct: int = 4
    team_fee_pct: int = 1
    min_collateral_ratio: float = 1.10


@dataclass(frozen=True)
class ProtocolConfig:
    privileged_identity: bytes = DEFAULT_PRIVILEGED_IDENTITY
    token_program_id: bytes = DEFAULT_TOKEN_PROGRAM_ID
    # Stabilizing-token base units per whole token burned
    token_denomination: int = 1_000_000_000
    fees: FeeConfig = field(default_factory=FeeConfig)


@dataclass(frozen=True)
class FixedPriceConfig:
    rate: float = 70.0
    native_decimals: int = 9


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feed_id: str = SOL_USD_FEED_ID
    native_decimals: int = 9


@dataclass(frozen=True)
class PriceSourceConfig:
    provider: str = "fixed"
    fixed: FixedPriceConfig = field(default_factory=FixedPriceConfig)
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class RentConfig:
    lamports_per_byte_year: int = 3480
    exemption_threshold_years: float = 2.0


@dataclass(frozen=True)
class AppConfig:
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    price_source: PriceSourceConfig = field(default_factory=PriceSourceConfig)
    rent: RentConfig = field(default_factory=RentConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_identity(raw: Any, default: bytes) -> bytes:
    # An empty string (e.g. an unset env var) keeps the default
    if raw is None or raw == "":
        return default
    return identity_from_str(str(raw))


def _build_fees(raw: dict[str, Any]) -> FeeConfig:
    return FeeConfig(
        origination_charge=int(raw.get("origination_charge", 200)),
        deposit_fee_pct=int(raw.get("deposit_fee_pct", 4)),
        team_fee_pct=int(raw.get("team_fee_pct", 1)),
        min_collateral_ratio=float(raw.get("min_collateral_ratio", 1.10)),
    )


def _build_protocol(raw: dict[str, Any], fees_raw: dict[str, Any]) -> ProtocolConfig:
    return ProtocolConfig(
        privileged_identity=_build_identity(
            raw.get("privileged_identity"), DEFAULT_PRIVILEGED_IDENTITY
        ),
        token_program_id=_build_identity(
            raw.get("token_program_id"), DEFAULT_TOKEN_PROGRAM_ID
        ),
        token_denomination=int(raw.get("token_denomination", 1_000_000_000)),
        fees=_build_fees(fees_raw),
    )


def _build_price_source(raw: dict[str, Any]) -> PriceSourceConfig:
    fixed_raw = raw.get("fixed", {}) or {}
    pyth_raw = raw.get("pyth", {}) or {}
    return PriceSourceConfig(
        provider=raw.get("provider", "fixed"),
        fixed=FixedPriceConfig(
            rate=float(fixed_raw.get("rate", 70.0)),
            native_decimals=int(fixed_raw.get("native_decimals", 9)),
        ),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feed_id=pyth_raw.get("feed_id", SOL_USD_FEED_ID),
            native_decimals=int(pyth_raw.get("native_decimals", 9)),
        ),
    )


def _build_rent(raw: dict[str, Any]) -> RentConfig:
    return RentConfig(
        lamports_per_byte_year=int(raw.get("lamports_per_byte_year", 3480)),
        exemption_threshold_years=float(raw.get("exemption_threshold_years", 2.0)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        protocol=_build_protocol(raw.get("protocol", {}) or {}, raw.get("fees", {}) or {}),
        price_source=_build_price_source(raw.get("price_source", {}) or {}),
        rent=_build_rent(raw.get("rent", {}) or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    fees = cfg.protocol.fees
    if fees.origination_charge < 0:
        raise ValueError("origination_charge must not be negative")
    if fees.deposit_fee_pct < 0 or fees.team_fee_pct < 0:
        raise ValueError("Fee percentages must not be negative")
    if fees.deposit_fee_pct + fees.team_fee_pct > 100:
        raise ValueError("Combined fee percentage exceeds 100")
    if fees.min_collateral_ratio < 1.0:
        raise ValueError("min_collateral_ratio must be at least 1.0")
    if cfg.protocol.token_denomination <= 0:
        raise ValueError("token_denomination must be positive")

    if cfg.price_source.provider not in PRICE_PROVIDERS:
        raise ValueError(
            f"Unknown price provider '{cfg.price_source.provider}' "
            f"(expected one of {', '.join(PRICE_PROVIDERS)})"
        )
    if cfg.price_source.fixed.rate <= 0:
        raise ValueError("Fixed price rate must be positive")
