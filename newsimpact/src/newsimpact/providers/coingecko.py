"""
CoinGecko public API (secondary backend).

Endpoints used:
- /search                  - {"coins": [{"symbol", "id", "name"}, ...]}
- /simple/price            - {<id>: {"usd": ..., "usd_24h_change": ...}}
- /coins/{id}/market_chart - {"prices": [[ms, price], ...]}

Only spot prices are exposed, so candles are flat and the move since a
news item is approximated by the trailing 24h change.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..errors import ProviderError
from ..http import HttpClient
from ..models.prices import OHLCPoint
from ..symbols import SymbolResolver
from .base import MarketBackend, to_float

logger = logging.getLogger(__name__)

BASE_URL = "https://api.coingecko.com/api/v3"
MAX_HISTORY_DAYS = 90


class CoinGeckoBackend(MarketBackend):
    name = "coingecko"

    def __init__(
        self,
        http: HttpClient,
        resolver: Optional[SymbolResolver] = None,
        base_url: str = BASE_URL,
        api_key: Optional[str] = None,
    ):
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._headers = {"x-cg-demo-api-key": api_key} if api_key else None
        self.resolver = resolver or SymbolResolver()
        if self.resolver.searcher is None:
            self.resolver.searcher = self.search_coins

    async def search_coins(self, query: str) -> List[Dict[str, Any]]:
        """Raw search hits; raises ProviderError so the resolver can log it."""
        data = await self._http.get_json(
            f"{self._base_url}/search", params={"query": query}, headers=self._headers
        )
        if not isinstance(data, dict) or not isinstance(data.get("coins"), list):
            raise ProviderError("CoinGecko search returned an unexpected payload", details={"query": query})
        return data["coins"]

    async def _coin_id(self, ticker: str) -> Optional[str]:
        symbol = await self.resolver.resolve(ticker)
        return symbol.coin_id if symbol else None

    async def _simple_price(self, ticker: str) -> Optional[Dict[str, Any]]:
        coin_id = await self._coin_id(ticker)
        if not coin_id:
            return None
        try:
            data = await self._http.get_json(
                f"{self._base_url}/simple/price",
                params={"ids": coin_id, "vs_currencies": "usd", "include_24hr_change": "true"},
                headers=self._headers,
            )
        except ProviderError as e:
            logger.warning(f"CoinGecko simple price failed for {coin_id}: {e.message}")
            return None
        entry = data.get(coin_id) if isinstance(data, dict) else None
        return entry if isinstance(entry, dict) else None

    async def spot_price(self, ticker: str) -> Optional[float]:
        entry = await self._simple_price(ticker)
        return to_float(entry.get("usd")) if entry else None

    async def change_24h(self, ticker: str) -> Optional[float]:
        entry = await self._simple_price(ticker)
        return to_float(entry.get("usd_24h_change")) if entry else None

    async def percent_change_since(self, ticker: str, anchor: datetime) -> Optional[float]:
        return await self.change_24h(ticker)

    async def series(self, ticker: str, start: datetime, end: datetime) -> List[OHLCPoint]:
        if start > end:
            return []
        coin_id = await self._coin_id(ticker)
        if not coin_id:
            return []

        now = datetime.now(timezone.utc)
        span_days = (now - start).total_seconds() / 86400
        days = min(MAX_HISTORY_DAYS, max(1, math.ceil(span_days)))
        try:
            data = await self._http.get_json(
                f"{self._base_url}/coins/{coin_id}/market_chart",
                params={"vs_currency": "usd", "days": days},
                headers=self._headers,
            )
        except ProviderError as e:
            logger.warning(f"CoinGecko market chart failed for {coin_id}: {e.message}")
            return []

        prices = data.get("prices") if isinstance(data, dict) else None
        if not isinstance(prices, list):
            return []

        start_ms = start.timestamp() * 1000
        end_ms = end.timestamp() * 1000
        points = []
        for row in prices:
            try:
                ts_ms = float(row[0])
                price = to_float(row[1])
            except (TypeError, ValueError, IndexError):
                continue
            if price is None or not (start_ms <= ts_ms <= end_ms):
                continue
            ts = datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)
            points.append(OHLCPoint.flat(ts, price))

        points.sort(key=lambda p: p.timestamp)
        return points
