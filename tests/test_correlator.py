import datetime
import unittest
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "newsimpact" / "src"
sys.path.insert(0, str(SRC))

from fakes import FakeHttp, StubBackend
from newsimpact.correlator import PriceCorrelator, time_ago
from newsimpact.errors import ProviderError
from newsimpact.models.highlights import Highlight
from newsimpact.providers.binance import BinanceBackend
from newsimpact.providers.coingecko import CoinGeckoBackend
from newsimpact.symbols import SymbolResolver

UTC = datetime.timezone.utc
NOW = datetime.datetime(2026, 1, 25, 12, 0, tzinfo=UTC)


class TestTimeAgo(unittest.TestCase):
    def test_unit_boundaries(self):
        cases = [
            (0, "0s ago"),
            (59, "59s ago"),
            (60, "1m ago"),
            (3599, "59m ago"),
            (3600, "1h ago"),
            (86399, "23h ago"),
            (86400, "1d ago"),
            (3 * 86400 + 5, "3d ago"),
        ]
        for seconds, expected in cases:
            anchor = NOW - datetime.timedelta(seconds=seconds)
            self.assertEqual(time_ago(anchor, NOW), expected)

    def test_future_anchor_clamps_to_zero(self):
        self.assertEqual(time_ago(NOW + datetime.timedelta(minutes=5), NOW), "0s ago")

    def test_naive_datetimes_are_utc(self):
        anchor = datetime.datetime(2026, 1, 25, 11, 0)
        self.assertEqual(time_ago(anchor, NOW), "1h ago")


class TestCorrelate(unittest.IsolatedAsyncioTestCase):
    async def test_percent_change_is_exact(self):
        primary = StubBackend("primary", historical=100.0, current=110.0)
        correlator = PriceCorrelator([primary])

        change = await correlator.correlate("BTC", NOW)

        self.assertEqual(change, 10.0)
        self.assertIn(("price_at", "BTC"), primary.calls)
        self.assertIn(("spot_price", "BTC"), primary.calls)

    async def test_negative_change_not_clamped(self):
        correlator = PriceCorrelator([StubBackend(historical=200.0, current=50.0)])

        self.assertEqual(await correlator.correlate("ETH", NOW), -75.0)

    async def test_falls_back_when_historical_not_positive(self):
        primary = StubBackend("primary", historical=0.0, current=5.0)
        secondary = StubBackend("secondary", change=2.5)

        change = await PriceCorrelator([primary, secondary]).correlate("BTC", NOW)

        self.assertEqual(change, 2.5)

    async def test_backend_exceptions_are_swallowed(self):
        broken = StubBackend("broken", error=RuntimeError("boom"))
        secondary = StubBackend("secondary", change=-1.0)

        self.assertEqual(await PriceCorrelator([broken, secondary]).correlate("BTC", NOW), -1.0)

    async def test_absent_when_nothing_answers(self):
        correlator = PriceCorrelator([StubBackend("a"), StubBackend("b")])

        self.assertIsNone(await correlator.correlate("BTC", NOW))
        self.assertIsNone(await correlator.correlate("", NOW))

    async def test_primary_failure_engages_secondary_24h_change(self):
        down = ProviderError("Timed out after 10s", details={})
        binance_http = FakeHttp({"/api/v3/ticker/price": down, "/api/v3/klines": down})
        gecko_http = FakeHttp({
            "/simple/price": {"bitcoin": {"usd": 64000.0, "usd_24h_change": -3.2}},
        })
        resolver = SymbolResolver()
        backends = [
            BinanceBackend(binance_http),
            CoinGeckoBackend(gecko_http, resolver=resolver),
        ]

        change = await PriceCorrelator(backends, resolver=resolver).correlate("BTC", NOW)

        self.assertEqual(change, -3.2)
        self.assertEqual(len(binance_http.calls), 2)


class TestEnrich(unittest.IsolatedAsyncioTestCase):
    async def test_enrich_fills_fields(self):
        resolver = SymbolResolver()
        correlator = PriceCorrelator([StubBackend(historical=100.0, current=105.0)], resolver=resolver)
        highlight = Highlight(
            index=1, text="$BTC: news", ticker="BTC",
            anchor_time=NOW - datetime.timedelta(minutes=30),
        )

        await correlator.enrich(highlight, now=NOW)

        self.assertEqual(highlight.time_ago, "30m ago")
        self.assertEqual(highlight.symbol.coin_id, "bitcoin")
        self.assertAlmostEqual(highlight.price_change, 5.0)

    async def test_enrich_without_ticker_only_sets_time(self):
        backend = StubBackend(historical=100.0, current=105.0)
        highlight = Highlight(index=1, text="Macro: Fed cuts", anchor_time=NOW - datetime.timedelta(hours=2))

        await PriceCorrelator([backend]).enrich(highlight, now=NOW)

        self.assertEqual(highlight.time_ago, "2h ago")
        self.assertIsNone(highlight.price_change)
        self.assertEqual(backend.calls, [])


if __name__ == "__main__":
    unittest.main()
