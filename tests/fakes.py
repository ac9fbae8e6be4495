"""Test doubles for HTTP and market backends."""
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "newsimpact" / "src"
sys.path.insert(0, str(SRC))

from newsimpact.errors import ProviderError
from newsimpact.models.prices import OHLCPoint
from newsimpact.providers.base import MarketBackend


class FakeHttp:
    """
    Stands in for HttpClient. Routes map a URL suffix to a payload, a
    callable taking params, or an exception to raise.
    """

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def _answer(self, url, params):
        for suffix, resp in self.routes.items():
            if url.endswith(suffix):
                if isinstance(resp, Exception):
                    raise resp
                return resp(params) if callable(resp) else resp
        raise ProviderError("HTTP 404: not found", details={"status": 404, "message": "not found"})

    async def get_json(self, url, params=None, **kwargs):
        self.calls.append(("GET", url, params))
        return self._answer(url, params)

    async def post_json(self, url, payload, **kwargs):
        self.calls.append(("POST", url, payload))
        return self._answer(url, payload)


class StubBackend(MarketBackend):
    """Backend with canned answers and a call log."""

    def __init__(
        self,
        name="stub",
        historical: Optional[float] = None,
        current: Optional[float] = None,
        change: Optional[float] = None,
        points: Optional[List[OHLCPoint]] = None,
        error: Optional[Exception] = None,
    ):
        self.name = name
        self.historical = historical
        self.current = current
        self.change = change
        self.points = points or []
        self.error = error
        self.calls = []

    async def price_at(self, ticker: str, at: datetime):
        self.calls.append(("price_at", ticker))
        if self.error:
            raise self.error
        return self.historical

    async def spot_price(self, ticker: str):
        self.calls.append(("spot_price", ticker))
        if self.error:
            raise self.error
        return self.current

    async def change_24h(self, ticker: str):
        self.calls.append(("change_24h", ticker))
        return self.change

    async def series(self, ticker: str, start: datetime, end: datetime):
        self.calls.append(("series", ticker))
        if self.error:
            raise self.error
        return list(self.points)
