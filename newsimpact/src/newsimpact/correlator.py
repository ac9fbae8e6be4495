import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .models.highlights import Highlight
from .providers.base import MarketBackend
from .symbols import SymbolResolver, normalize_ticker

logger = logging.getLogger(__name__)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def time_ago(anchor: datetime, now: Optional[datetime] = None) -> str:
    """
    Elapsed time since `anchor` in its largest whole unit:
    under a minute in seconds, under an hour in minutes,
    under a day in hours, otherwise days.
    """
    end = _aware(now) if now else datetime.now(timezone.utc)
    elapsed = max(0, int((end - _aware(anchor)).total_seconds()))
    if elapsed < 60:
        return f"{elapsed}s ago"
    if elapsed < 3600:
        return f"{elapsed // 60}m ago"
    if elapsed < 86400:
        return f"{elapsed // 3600}h ago"
    return f"{elapsed // 86400}d ago"


class PriceCorrelator:
    """
    Percent price change of a ticker since a news timestamp, asking each
    backend in order and keeping the first answer.
    """

    def __init__(self, backends: Sequence[MarketBackend], resolver: Optional[SymbolResolver] = None):
        self.backends: List[MarketBackend] = list(backends)
        self.resolver = resolver

    async def correlate(self, ticker: str, anchor: datetime) -> Optional[float]:
        key = normalize_ticker(ticker)
        if not key:
            return None
        anchor = _aware(anchor)

        for backend in self.backends:
            try:
                change = await backend.percent_change_since(key, anchor)
            except Exception as e:
                logger.warning(f"{backend.name} failed on {key}: {e}")
                continue
            if change is not None and math.isfinite(change):
                logger.debug(f"{key}: {change:.2f}% via {backend.name}")
                return change

        logger.info(f"No price change available for {key}")
        return None

    async def enrich(self, highlight: Highlight, now: Optional[datetime] = None) -> Highlight:
        """Fill time_ago, symbol and price_change in place. Never raises."""
        if highlight.anchor_time is not None:
            highlight.time_ago = time_ago(highlight.anchor_time, now)

        if not highlight.ticker or highlight.anchor_time is None:
            return highlight

        if self.resolver is not None:
            try:
                highlight.symbol = await self.resolver.resolve(highlight.ticker)
            except Exception as e:
                logger.warning(f"Symbol resolution failed for {highlight.ticker}: {e}")

        highlight.price_change = await self.correlate(highlight.ticker, highlight.anchor_time)
        return highlight
