"""Token price oracle: provider failover, caching and volatility readings"""

import time
from dataclasses import replace
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests
from ledger.errors.price import PriceUnavailable
from ledger.services.price import TokenPriceService


def _response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def _dexscreener(price="0.0000123"):
    return _response(
        {
            "pairs": [
                {
                    "priceUsd": price,
                    "baseToken": {"symbol": "JCMOVES", "name": "JC Moves"},
                    "priceChange": {"h24": "-3.5"},
                    "volume": {"h24": "1520.40"},
                    "marketCap": 12345,
                    "liquidity": {"usd": "8000"},
                    "fdv": "12345",
                }
            ]
        }
    )


def _moonshot(price="0.0000456"):
    return _response({"price": price, "symbol": "JCMOVES", "volume24h": 10})


@pytest.fixture
def service(test_config):
    return TokenPriceService(test_config)


class TestCurrentPrice:
    def test_dexscreener_quote(self, service, test_config):
        with patch("ledger.services.price.requests.get") as get:
            get.return_value = _dexscreener()
            quote = service.get_current_price()
        assert quote.price == Decimal("0.0000123")
        assert quote.source == "dexscreener"
        assert quote.market_data.price_change_24h == Decimal("-3.5")
        assert quote.market_data.liquidity == Decimal("8000")
        url = get.call_args.args[0]
        assert url.endswith(test_config.token_address)
        assert get.call_args.kwargs["timeout"] == test_config.oracle_timeout_seconds

    def test_fresh_quote_is_cached(self, service):
        with patch("ledger.services.price.requests.get") as get:
            get.return_value = _dexscreener()
            service.get_current_price()
            quote = service.get_current_price()
        assert quote.source == "cache"
        assert quote.price == Decimal("0.0000123")
        assert get.call_count == 1

    def test_moonshot_backup(self, service):
        with patch("ledger.services.price.requests.get") as get:
            get.side_effect = [requests.Timeout("slow"), _moonshot()]
            quote = service.get_current_price()
        assert quote.source == "moonshot"
        assert quote.price == Decimal("0.0000456")

    def test_dexscreener_without_pairs(self, service):
        with patch("ledger.services.price.requests.get") as get:
            get.side_effect = [_response({"pairs": []}), _moonshot()]
            quote = service.get_current_price()
        assert quote.source == "moonshot"

    def test_stale_quote_after_outage(self, service):
        with patch("ledger.services.price.requests.get") as get:
            get.return_value = _dexscreener()
            service.get_current_price()
        service._quote_cache().clear()
        # network is refused from here on
        quote = service.get_current_price()
        assert quote.source == "cache_stale"
        assert quote.price == Decimal("0.0000123")

    def test_fallback_price(self, service, test_config):
        quote = service.get_current_price()
        assert quote.source == "fallback"
        assert quote.price == test_config.fallback_token_price
        # a fallback price is not an observation
        assert service.get_price_history() == []

    def test_no_price_at_all(self, test_config):
        service = TokenPriceService(replace(test_config, fallback_token_price=None))
        with pytest.raises(PriceUnavailable):
            service.get_current_price()

    def test_conversions(self, service):
        with patch("ledger.services.price.requests.get") as get:
            get.return_value = _dexscreener("0.01")
            tokens, quote = service.usd_to_tokens(Decimal("2.50"))
            usd, _ = service.tokens_to_usd(Decimal("333"))
        assert tokens == Decimal("250")
        assert quote.price == Decimal("0.01")
        assert usd == Decimal("3.33")

    def test_smoothed_price(self, service):
        with patch("ledger.services.price.requests.get") as get:
            get.return_value = _dexscreener("0.10")
            service.get_current_price()
            service._quote_cache().clear()
            get.return_value = _dexscreener("0.20")
            service.get_current_price()
        # 0.1 * 0.20 + 0.9 * 0.10
        assert service.get_smoothed_price() == Decimal("0.11")
        assert len(service.get_price_history()) == 2


class TestVolatilityReading:
    def test_insufficient_data(self, service):
        reading = service.check_volatility()
        assert reading.change_percent == Decimal(0)
        assert reading.recommendation == "Insufficient data"

    def test_stable(self, service):
        now = time.time()
        service.add_to_history(Decimal("1.00"), "dexscreener", now - 1800)
        service.add_to_history(Decimal("1.02"), "dexscreener", now)
        reading = service.check_volatility()
        assert reading.change_percent == Decimal("2")
        assert reading.recommendation == "Price stable"
        assert reading.sample_count == 2

    def test_reference_is_one_window_ago(self, service):
        now = time.time()
        service.add_to_history(Decimal("2.00"), "dexscreener", now - 7200)
        service.add_to_history(Decimal("1.00"), "dexscreener", now - 3700)
        service.add_to_history(Decimal("1.50"), "dexscreener", now - 600)
        service.add_to_history(Decimal("1.10"), "dexscreener", now)
        reading = service.check_volatility()
        assert reading.change_percent == Decimal("10")
        assert reading.recommendation.startswith("High upward volatility")

    def test_downward_swing(self, service):
        now = time.time()
        service.add_to_history(Decimal("1.00"), "dexscreener", now - 3600)
        service.add_to_history(Decimal("0.70"), "dexscreener", now)
        reading = service.check_volatility()
        assert reading.change_percent == Decimal("-30")
        assert reading.recommendation.startswith("High downward volatility")

    def test_old_points_expire(self, service, test_config):
        now = time.time()
        service.add_to_history(
            Decimal("5.00"),
            "dexscreener",
            now - (test_config.price_history_hours + 1) * 3600,
        )
        service.add_to_history(Decimal("1.00"), "dexscreener", now)
        assert [p.price for p in service.get_price_history()] == [Decimal("1.00")]
