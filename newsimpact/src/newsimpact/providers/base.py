"""
Market backend interface.

Each backend answers the same questions about a ticker (price at a moment,
spot price, 24h change, candles in a range). Callers walk an ordered list of
backends and keep the first non-empty answer, so a backend that cannot
answer returns None or [] instead of raising.
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from ..models.prices import OHLCPoint

logger = logging.getLogger(__name__)


class MarketBackend:
    """Base strategy. Every capability defaults to "no data"."""

    name = "base"

    async def price_at(self, ticker: str, at: datetime) -> Optional[float]:
        """Close of the first bar at or after `at`."""
        return None

    async def spot_price(self, ticker: str) -> Optional[float]:
        return None

    async def change_24h(self, ticker: str) -> Optional[float]:
        """Trailing 24 hour change, in percent."""
        return None

    async def series(self, ticker: str, start: datetime, end: datetime) -> List[OHLCPoint]:
        return []

    async def percent_change_since(self, ticker: str, anchor: datetime) -> Optional[float]:
        """
        Percent move from `anchor` to now. Historical and spot prices are
        fetched concurrently; without both, the 24h change stands in.
        """
        historical, current = await asyncio.gather(
            self.price_at(ticker, anchor),
            self.spot_price(ticker),
        )
        if historical is not None and current is not None and historical > 0:
            return (current - historical) / historical * 100
        return await self.change_24h(ticker)

    async def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name})>"


def to_float(value) -> Optional[float]:
    """Parse a decimal string/number from a payload; None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if out != out or out in (float("inf"), float("-inf")):
        return None
    return out


def to_epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)
