"""Price sources for collateral valuation."""
from __future__ import annotations

from typing import Any

from ..config import PriceSourceConfig
from .fixed import FixedRatePriceSource
from .pyth import PythPriceSource

# Registry of price source factories keyed by provider name.
_PROVIDER_FACTORIES: dict[str, Any] = {
    "fixed": lambda cfg: FixedRatePriceSource(cfg.fixed.rate, cfg.fixed.native_decimals),
    "pyth": lambda cfg: PythPriceSource(cfg.pyth),
}


def build_price_source(config: PriceSourceConfig) -> FixedRatePriceSource | PythPriceSource:
    factory = _PROVIDER_FACTORIES.get(config.provider)
    if factory is None:
        raise ValueError(f"Unknown price provider '{config.provider}'")
    return factory(config)


__all__ = ["FixedRatePriceSource", "PythPriceSource", "build_price_source"]
