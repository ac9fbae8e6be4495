import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .models.prices import OHLCPoint
from .providers.base import MarketBackend
from .symbols import normalize_ticker

logger = logging.getLogger(__name__)


class ChartSeriesProvider:
    """
    OHLC candles for a ticker between two instants, from the first backend
    that returns any. An empty list means "no chart", not an error.
    """

    def __init__(self, backends: Sequence[MarketBackend]):
        self.backends = list(backends)

    async def series(
        self,
        ticker: str,
        start: datetime,
        end: Optional[datetime] = None,
    ) -> List[OHLCPoint]:
        key = normalize_ticker(ticker)
        start = start if start.tzinfo else start.replace(tzinfo=timezone.utc)
        end = end or datetime.now(timezone.utc)
        end = end if end.tzinfo else end.replace(tzinfo=timezone.utc)
        if not key or start > end:
            return []

        for backend in self.backends:
            try:
                points = await backend.series(key, start, end)
            except Exception as e:
                logger.warning(f"{backend.name} series failed for {key}: {e}")
                continue
            if points:
                logger.debug(f"{key}: {len(points)} points via {backend.name}")
                return sorted(points, key=lambda p: p.timestamp)

        logger.info(f"No chart data for {key} between {start.isoformat()} and {end.isoformat()}")
        return []
