"""Pyth Network price source for native collateral."""
import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..errors import PriceUnavailableError

logger = logging.getLogger(__name__)


def _normalize_feed_id(feed_id: str) -> str:
    feed_id = feed_id.lower()
    return feed_id[2:] if feed_id.startswith("0x") else feed_id


class PythPriceSource:
    """Cache the latest native-coin price from Pyth Hermes.

    Operations run synchronously, so the price is fetched ahead of time with
    :meth:`refresh` and conversions use the cached value.
    """

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.feed_id = _normalize_feed_id(config.feed_id)
        self.native_decimals = config.native_decimals
        self._price: float | None = None

    @property
    def price(self) -> float | None:
        return self._price

    async def refresh(self) -> float | None:
        """Fetch the current price; keeps the previous one on failure."""
        url = f"{self.hermes_url}?ids[]={self.feed_id}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching price from Pyth: HTTP %s", response.status
                        )
                        return self._price

                    data = await response.json()
                    for item in data.get("parsed", []):
                        if _normalize_feed_id(item.get("id", "")) != self.feed_id:
                            continue
                        price_data = item.get("price", {})
                        price_raw = int(price_data.get("price", 0))
                        expo = int(price_data.get("expo", 0))

                        self._price = price_raw * (10**expo)
                        logger.info("Fetched price from Pyth Network: $%.4f", self._price)
                        break
                    else:
                        logger.warning("Feed %s missing from Pyth response", self.feed_id)

        except Exception as e:
            logger.error("Error fetching price from Pyth: %s", e)

        return self._price

    def to_reference_value(self, native_amount: int) -> float:
        if self._price is None:
            raise PriceUnavailableError("No Pyth price fetched yet")
        return float(native_amount) / float(10**self.native_decimals) * self._price
