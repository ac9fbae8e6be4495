"""
Binance spot public API (primary backend).

Endpoints used:
- /api/v3/ticker/price - spot price, {"symbol": ..., "price": "<decimal>"}
- /api/v3/klines       - candles, [[openTime, open, high, low, close, ...], ...]
"""
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from ..errors import ProviderError
from ..http import HttpClient
from ..models.prices import OHLCPoint
from ..symbols import trading_pair
from .base import MarketBackend, to_epoch_ms, to_float

logger = logging.getLogger(__name__)

BASE_URL = "https://api.binance.com"

PRICE_AT_INTERVAL = "1m"
SERIES_INTERVAL = "5m"
MAX_SERIES_POINTS = 500
_KLINES_HARD_LIMIT = 1000


class BinanceBackend(MarketBackend):
    name = "binance"

    def __init__(
        self,
        http: HttpClient,
        base_url: str = BASE_URL,
        series_interval: str = SERIES_INTERVAL,
        max_points: int = MAX_SERIES_POINTS,
    ):
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._series_interval = series_interval
        self._max_points = max(1, min(max_points, _KLINES_HARD_LIMIT))

    async def _get(self, path: str, params: dict) -> Optional[Any]:
        try:
            return await self._http.get_json(f"{self._base_url}{path}", params=params)
        except ProviderError as e:
            logger.warning(f"Binance {path} failed for {params.get('symbol')}: {e.message}")
            return None

    async def spot_price(self, ticker: str) -> Optional[float]:
        pair = trading_pair(ticker)
        if not pair:
            return None
        data = await self._get("/api/v3/ticker/price", {"symbol": pair})
        if not isinstance(data, dict):
            return None
        return to_float(data.get("price"))

    async def price_at(self, ticker: str, at: datetime) -> Optional[float]:
        pair = trading_pair(ticker)
        if not pair:
            return None
        data = await self._get("/api/v3/klines", {
            "symbol": pair,
            "interval": PRICE_AT_INTERVAL,
            "startTime": to_epoch_ms(at),
            "limit": 1,
        })
        try:
            return to_float(data[0][4])
        except (TypeError, IndexError, KeyError):
            return None

    async def series(self, ticker: str, start: datetime, end: datetime) -> List[OHLCPoint]:
        pair = trading_pair(ticker)
        if not pair or start > end:
            return []
        data = await self._get("/api/v3/klines", {
            "symbol": pair,
            "interval": self._series_interval,
            "startTime": to_epoch_ms(start),
            "endTime": to_epoch_ms(end),
            "limit": self._max_points,
        })
        if not isinstance(data, list):
            return []

        points = []
        for row in data[: self._max_points]:
            try:
                ts = datetime.fromtimestamp(int(row[0]) / 1000, tz=timezone.utc)
                values = [to_float(v) for v in row[1:5]]
            except (TypeError, ValueError, IndexError):
                continue
            if any(v is None for v in values):
                continue
            o, h, l, c = values
            points.append(OHLCPoint(timestamp=ts, open=o, high=h, low=l, close=c))

        points.sort(key=lambda p: p.timestamp)
        return points
