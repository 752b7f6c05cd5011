"""Token price oracle service"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

import requests
from cachetools import TTLCache
from fastapi import Depends
from ledger.config import Config, get_config
from ledger.errors.price import PriceUnavailable
from ledger.models.types import quantize_tokens, quantize_usd

logger = logging.getLogger(__name__)

# exponential moving average factor for the smoothed price
SMOOTHING_FACTOR = Decimal("0.1")


@dataclass(frozen=True)
class MarketData:
    address: str
    symbol: str
    name: str
    price_usd: Decimal
    price_change_24h: Decimal
    volume_24h: Decimal
    market_cap: Decimal
    liquidity: Decimal
    fdv: Decimal
    timestamp: float


@dataclass(frozen=True)
class PriceQuote:
    price: Decimal
    source: str
    market_data: MarketData | None = None


@dataclass(frozen=True)
class PricePoint:
    timestamp: float
    price: Decimal
    source: str


@dataclass(frozen=True)
class VolatilityReading:
    change_percent: Decimal
    sample_count: int
    recommendation: str


def _to_decimal(value: Any) -> Decimal:
    """Parse an API number leniently, anything unparsable counts as zero."""
    if value in (None, ""):
        return Decimal(0)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(0)


class TokenPriceService:
    """Current token price from DexScreener, Moonshot as backup.

    Fresh quotes are cached for a short TTL, the last good quote is kept as a
    stale fallback and the configured fallback price is the last resort. The
    service also keeps the rolling price history used for volatility checks.
    """

    _fresh_quotes: TTLCache | None = None
    _last_quotes: dict[str, PriceQuote] = {}
    _history: list[PricePoint] = []
    _smoothed_price: Decimal | None = None
    _lock = threading.Lock()

    def __init__(self, config: Config = Depends(get_config)):
        self.config = config

    @classmethod
    def clear_cache(cls) -> None:
        with cls._lock:
            cls._fresh_quotes = None
            cls._last_quotes = {}
            cls._history = []
            cls._smoothed_price = None

    def _quote_cache(self) -> TTLCache:
        cls = self.__class__
        if cls._fresh_quotes is None:
            cls._fresh_quotes = TTLCache(
                maxsize=8, ttl=self.config.price_cache_ttl_seconds, timer=time.time
            )
        return cls._fresh_quotes

    def get_current_price(self) -> PriceQuote:
        address = self.config.token_address
        with self._lock:
            cached = self._quote_cache().get(address)
        if cached is not None:
            return replace(cached, source="cache")

        sources: list[tuple[str, Callable[[], MarketData | None]]] = [
            ("dexscreener", self._fetch_from_dexscreener),
            ("moonshot", self._fetch_from_moonshot),
        ]
        for source, fetch in sources:
            try:
                market_data = fetch()
            except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
                logger.warning("%s price request failed: %s", source, exc)
                continue
            if market_data is None or market_data.price_usd <= 0:
                logger.warning("%s returned no usable price", source)
                continue
            quote = PriceQuote(
                price=market_data.price_usd, source=source, market_data=market_data
            )
            self._remember(quote)
            return quote

        stale = self._last_quotes.get(address)
        if stale is not None:
            logger.warning("Using stale cached price for %s", self.config.token_symbol)
            return replace(stale, source="cache_stale")

        fallback = self.config.fallback_token_price
        if fallback is None or fallback <= 0:
            logger.error("All price APIs failed and no fallback price is configured")
            raise PriceUnavailable(self.config.token_symbol)
        # the fallback price is not a market observation, keep it out of history
        logger.error("All price APIs failed, using fallback price %s", fallback)
        return PriceQuote(price=fallback, source="fallback")

    def _request_json(self, url: str) -> Any:
        response = requests.get(
            url,
            headers={"Accept": "application/json", "User-Agent": "ledger/1.0"},
            timeout=self.config.oracle_timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def _fetch_from_dexscreener(self) -> MarketData | None:
        data = self._request_json(
            f"{self.config.dexscreener_url}/{self.config.token_address}"
        )
        pairs = data.get("pairs") or []
        if not pairs:
            return None
        pair = pairs[0]
        base_token = pair.get("baseToken") or {}
        return MarketData(
            address=self.config.token_address,
            symbol=base_token.get("symbol") or self.config.token_symbol,
            name=base_token.get("name") or f"{self.config.token_symbol} Token",
            price_usd=_to_decimal(pair.get("priceUsd")),
            price_change_24h=_to_decimal((pair.get("priceChange") or {}).get("h24")),
            volume_24h=_to_decimal((pair.get("volume") or {}).get("h24")),
            market_cap=_to_decimal(pair.get("marketCap")),
            liquidity=_to_decimal((pair.get("liquidity") or {}).get("usd")),
            fdv=_to_decimal(pair.get("fdv")),
            timestamp=time.time(),
        )

    def _fetch_from_moonshot(self) -> MarketData | None:
        data = self._request_json(
            f"{self.config.moonshot_url}/{self.config.token_address}"
        )
        price = _to_decimal(data.get("price")) or _to_decimal(data.get("priceUsd"))
        return MarketData(
            address=self.config.token_address,
            symbol=data.get("symbol") or self.config.token_symbol,
            name=data.get("name") or f"{self.config.token_symbol} Token",
            price_usd=price,
            price_change_24h=_to_decimal(data.get("priceChange24h")),
            volume_24h=_to_decimal(data.get("volume24h")),
            market_cap=_to_decimal(data.get("marketCap")),
            liquidity=_to_decimal(data.get("liquidity")),
            fdv=_to_decimal(data.get("fdv")),
            timestamp=time.time(),
        )

    def _remember(self, quote: PriceQuote) -> None:
        cls = self.__class__
        address = self.config.token_address
        with self._lock:
            self._quote_cache()[address] = quote
            cls._last_quotes[address] = quote
            if cls._smoothed_price is None:
                cls._smoothed_price = quote.price
            else:
                cls._smoothed_price = (
                    SMOOTHING_FACTOR * quote.price
                    + (1 - SMOOTHING_FACTOR) * cls._smoothed_price
                )
        self.add_to_history(quote.price, quote.source)

    def add_to_history(
        self, price: Decimal, source: str, timestamp: float | None = None
    ) -> None:
        """Record a market observation and drop the ones past retention."""
        cls = self.__class__
        now = time.time()
        cutoff = now - self.config.price_history_hours * 3600
        point = PricePoint(
            timestamp=now if timestamp is None else timestamp,
            price=price,
            source=source,
        )
        with self._lock:
            history = [p for p in cls._history if p.timestamp > cutoff]
            history.append(point)
            history.sort(key=lambda p: p.timestamp)
            cls._history = history

    def get_price_history(self, hours: int | None = None) -> list[PricePoint]:
        hours = self.config.price_history_hours if hours is None else hours
        cutoff = time.time() - hours * 3600
        with self._lock:
            return [p for p in self._history if p.timestamp > cutoff]

    def check_volatility(self) -> VolatilityReading:
        """Signed percent change between the newest observation and the one
        closest to a volatility window ago."""
        history = self.get_price_history()
        if len(history) < 2:
            return VolatilityReading(
                change_percent=Decimal(0),
                sample_count=len(history),
                recommendation="Insufficient data",
            )
        current = history[-1]
        window_start = current.timestamp - self.config.volatility_window_minutes * 60
        older = [p for p in history if p.timestamp <= window_start]
        reference = older[-1] if older else history[0]
        if reference.price <= 0:
            change = Decimal(0)
        else:
            change = (current.price - reference.price) / reference.price * 100

        recommendation = "Price stable"
        if abs(change) > self.config.medium_volatility_percent:
            if change > 0:
                recommendation = (
                    "High upward volatility - consider reducing reward distributions"
                )
            else:
                recommendation = (
                    "High downward volatility - consider increasing treasury reserves"
                )
        return VolatilityReading(
            change_percent=change,
            sample_count=len(history),
            recommendation=recommendation,
        )

    def get_smoothed_price(self) -> Decimal | None:
        return self._smoothed_price

    def usd_to_tokens(self, usd_amount: Decimal) -> tuple[Decimal, PriceQuote]:
        quote = self.get_current_price()
        return quantize_tokens(usd_amount / quote.price), quote

    def tokens_to_usd(self, token_amount: Decimal) -> tuple[Decimal, PriceQuote]:
        quote = self.get_current_price()
        return quantize_usd(token_amount * quote.price), quote
