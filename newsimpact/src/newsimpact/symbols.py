"""
Ticker resolution.

A ticker lifted from a highlight ("BTC", "$eth", "SOLUSDT") is mapped to
the identifiers the two market backends use: a trading pair on the primary
exchange and an asset id on the secondary aggregator.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

import yaml

from .errors import ProviderError, ValidationError
from .models.highlights import MarketSymbol

logger = logging.getLogger(__name__)

QUOTE_ASSET = "USDT"

_KNOWN_SUFFIXES = ("-PERP", ".P", "PERP", "USDT", "USDC", "-USD")

# Well-known tokens and names, ticker -> secondary backend id
MANUAL_OVERRIDES: Dict[str, str] = {
    "BTC": "bitcoin",
    "BITCOIN": "bitcoin",
    "ETH": "ethereum",
    "ETHEREUM": "ethereum",
    "SOL": "solana",
    "SOLANA": "solana",
    "BNB": "binancecoin",
    "XRP": "ripple",
    "RIPPLE": "ripple",
    "DOGE": "dogecoin",
    "DOGECOIN": "dogecoin",
    "ADA": "cardano",
    "CARDANO": "cardano",
    "TRX": "tron",
    "TON": "the-open-network",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "DOT": "polkadot",
    "LTC": "litecoin",
    "SUI": "sui",
    "HYPE": "hyperliquid",
    "PEPE": "pepe",
    "SHIB": "shiba-inu",
    "UNI": "uniswap",
    "AAVE": "aave",
    "ARB": "arbitrum",
    "OP": "optimism",
    "POL": "polygon-ecosystem-token",
    "MATIC": "polygon-ecosystem-token",
    "NEAR": "near",
    "APT": "aptos",
    "ENA": "ethena",
    "WLD": "worldcoin-wld",
    "TIA": "celestia",
    "USDT": "tether",
    "USDC": "usd-coin",
}

# Names whose primary exchange symbol differs from the ticker
PAIR_ALIASES: Dict[str, str] = {
    "BITCOIN": "BTC",
    "ETHEREUM": "ETH",
    "SOLANA": "SOL",
    "RIPPLE": "XRP",
    "DOGECOIN": "DOGE",
    "CARDANO": "ADA",
    "MATIC": "POL",
    "SHIBA": "SHIB",
}

Searcher = Callable[[str], Awaitable[List[Dict[str, Any]]]]


def normalize_ticker(ticker: Optional[str]) -> str:
    """Uppercase, drop a leading `$` and quote/contract suffixes."""
    t = (ticker or "").strip().lstrip("$").upper()
    stripped = True
    while stripped:
        stripped = False
        for suffix in _KNOWN_SUFFIXES:
            if t.endswith(suffix) and len(t) > len(suffix):
                t = t[: -len(suffix)]
                stripped = True
                break
    return t


def trading_pair(ticker: str) -> Optional[str]:
    """Primary exchange pair for a ticker, e.g. BTC -> BTCUSDT."""
    t = normalize_ticker(ticker)
    if not t:
        return None
    base = PAIR_ALIASES.get(t, t)
    return f"{base}{QUOTE_ASSET}"


def load_overrides(path: str = "symbols.yaml") -> Dict[str, str]:
    """
    Load extra ticker -> asset id aliases from YAML.
    Expected shape:
      symbols:
        WIF: dogwifcoin
        BONK: bonk
    """
    p = Path(path)
    if not p.exists():
        raise ValidationError(f"Symbols file not found: {path}")

    try:
        data = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid symbols YAML: {e}")

    symbols = data.get("symbols") if isinstance(data, dict) else None
    if not isinstance(symbols, dict):
        raise ValidationError("Symbols file must contain a 'symbols' mapping.")

    out = {}
    for ticker, coin_id in symbols.items():
        if not isinstance(coin_id, str) or not coin_id.strip():
            raise ValidationError(f"Symbol '{ticker}' must map to a non-empty id.")
        key = normalize_ticker(str(ticker))
        if not key:
            raise ValidationError("Tickers must be non-empty strings.")
        out[key] = coin_id.strip()
    return out


class SymbolCache:
    """
    Per-run ticker -> MarketSymbol cache. `None` values are negative
    results. Keys are written once; later writes for a key are ignored.
    """

    def __init__(self):
        self._entries: Dict[str, Optional[MarketSymbol]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[MarketSymbol]:
        return self._entries.get(key)

    def put(self, key: str, value: Optional[MarketSymbol]) -> Optional[MarketSymbol]:
        return self._entries.setdefault(key, value)

    def clear(self) -> None:
        self._entries.clear()


class SymbolResolver:
    """
    Resolve tickers via manual overrides, then the cache, then an exact-match
    search on the secondary backend.
    """

    def __init__(
        self,
        searcher: Optional[Searcher] = None,
        cache: Optional[SymbolCache] = None,
        overrides: Optional[Dict[str, str]] = None,
    ):
        self.searcher = searcher
        self.cache = cache if cache is not None else SymbolCache()
        self.overrides = dict(MANUAL_OVERRIDES)
        if overrides:
            self.overrides.update(overrides)
        self._pending: Dict[str, asyncio.Task] = {}

    async def resolve(self, ticker: Optional[str]) -> Optional[MarketSymbol]:
        key = normalize_ticker(ticker)
        if not key:
            return None

        coin_id = self.overrides.get(key)
        if coin_id:
            return MarketSymbol(ticker=key, coin_id=coin_id, pair=trading_pair(key))

        if key in self.cache:
            return self.cache.get(key)

        # Share one search between concurrent callers of the same ticker
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._lookup(key))
            self._pending[key] = task
            task.add_done_callback(lambda _t, k=key: self._pending.pop(k, None))
        return await asyncio.shield(task)

    async def _lookup(self, key: str) -> Optional[MarketSymbol]:
        result = None
        if self.searcher is None:
            logger.debug(f"No searcher configured, {key} unresolved")
        else:
            try:
                coins = await self.searcher(key)
                result = self._pick_exact(key, coins)
            except ProviderError as e:
                logger.warning(f"Symbol search failed for {key}: {e.message}")

        if result is None:
            logger.info(f"No exact symbol match for {key}")
        return self.cache.put(key, result)

    @staticmethod
    def _pick_exact(key: str, coins: Any) -> Optional[MarketSymbol]:
        if not isinstance(coins, list):
            return None
        for coin in coins:
            if not isinstance(coin, dict):
                continue
            symbol = str(coin.get("symbol") or "")
            coin_id = coin.get("id")
            if symbol.upper() == key and coin_id:
                return MarketSymbol(
                    ticker=key,
                    coin_id=str(coin_id),
                    name=coin.get("name"),
                    pair=trading_pair(key),
                )
        return None
