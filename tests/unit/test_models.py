"""Unit tests for data models and symbol normalization."""

import pytest
from pydantic import ValidationError

from gembot.connectors.normalizer import (
    normalize_symbol,
    normalize_ticker,
    project_ticker,
    symbol_difference,
)
from gembot.errors import DecodeError
from gembot.models import (
    CancelDetails,
    CurrencyPair,
    GeminiTicker,
    HeartbeatResult,
    OrderBookEntry,
    TickerKey,
    TickerResponse,
    TickerSnapshot,
    TickerVolume,
)


# ---------------------------------------------------------------------------
# CurrencyPair tests
# ---------------------------------------------------------------------------


class TestCurrencyPair:
    """Tests for splitting exchange symbols."""

    @pytest.mark.parametrize(
        "symbol, base, quote",
        [
            ("btcusd", "BTC", "USD"),
            ("ETHBTC", "ETH", "BTC"),
            ("ethusdt", "ETH", "USDT"),
            ("btcgusd", "BTC", "GUSD"),
            ("dogeusd", "DOGE", "USD"),
            ("btceur", "BTC", "EUR"),
            ("abcxyz", "ABC", "XYZ"),
        ],
    )
    def test_from_symbol(self, symbol: str, base: str, quote: str) -> None:
        pair = CurrencyPair.from_symbol(symbol)
        assert pair.base == base
        assert pair.quote == quote

    def test_unsplittable(self) -> None:
        with pytest.raises(ValueError):
            CurrencyPair.from_symbol("usd")

    def test_symbol_and_display(self) -> None:
        pair = CurrencyPair(base="BTC", quote="USD")
        assert pair.symbol == "BTCUSD"
        assert pair.display == "BTC_USD"
        assert str(pair) == "BTCUSD"

    def test_frozen(self) -> None:
        pair = CurrencyPair(base="BTC", quote="USD")
        with pytest.raises(ValidationError):
            pair.base = "ETH"


# ---------------------------------------------------------------------------
# Symbol helper tests
# ---------------------------------------------------------------------------


class TestSymbolHelpers:
    """Tests for normalize_symbol and symbol_difference."""

    def test_normalize_symbol(self) -> None:
        assert normalize_symbol(" btcusd ") == "BTCUSD"

    def test_difference_empty_when_equal(self) -> None:
        assert symbol_difference(["BTCUSD", "ETHUSD"], ["ETHUSD", "BTCUSD"]) == []

    def test_difference_new_symbol(self) -> None:
        assert symbol_difference(["BTCUSD"], ["BTCUSD", "ETHUSD"]) == ["ETHUSD"]

    def test_difference_is_symmetric(self) -> None:
        assert symbol_difference(["BTCUSD", "LTCUSD"], ["BTCUSD", "ETHUSD"]) == ["LTCUSD", "ETHUSD"]

    def test_difference_deduplicates(self) -> None:
        assert symbol_difference([], ["ETHUSD", "ETHUSD"]) == ["ETHUSD"]


# ---------------------------------------------------------------------------
# Ticker projection tests
# ---------------------------------------------------------------------------


class TestTickerProjection:
    """Tests for the two-stage ticker decode."""

    def _response(self, volume: dict) -> TickerResponse:
        return TickerResponse.model_validate(
            {"ask": "100.5", "bid": "100.0", "last": "100.2", "volume": volume}
        )

    def test_round_trip_example(self) -> None:
        pair = CurrencyPair.from_symbol("BTCUSD")
        response = self._response({"BTC": "1.23", "USD": "123.45", "timestamp": 1620000000})
        ticker = project_ticker(pair, response)
        snapshot = normalize_ticker("Gemini", pair, ticker)

        assert snapshot.ask == 100.5
        assert snapshot.bid == 100.0
        assert snapshot.last == 100.2
        assert snapshot.volume == 123.45
        assert snapshot.volume_timestamp == 1620000000

    def test_missing_base_key_is_not_zeroed(self) -> None:
        pair = CurrencyPair.from_symbol("BTCUSD")
        response = self._response({"ETH": "1", "USD": "2", "timestamp": 1})
        with pytest.raises(DecodeError, match="'BTC'"):
            project_ticker(pair, response, path="pubticker/btcusd")

    def test_missing_reference_key(self) -> None:
        pair = CurrencyPair.from_symbol("ETHBTC")
        response = self._response({"ETH": "1", "timestamp": 1})
        with pytest.raises(DecodeError):
            project_ticker(pair, response)

    def test_non_numeric_volume(self) -> None:
        pair = CurrencyPair.from_symbol("BTCUSD")
        response = self._response({"BTC": "n/a", "USD": "2", "timestamp": 1})
        with pytest.raises(DecodeError, match="not numeric"):
            project_ticker(pair, response)

    def test_string_timestamp_rejected(self) -> None:
        pair = CurrencyPair.from_symbol("BTCUSD")
        response = self._response({"BTC": "1", "USD": "2", "timestamp": "soon"})
        with pytest.raises(DecodeError, match="timestamp"):
            project_ticker(pair, response)

    def test_non_numeric_price_fails_first_stage(self) -> None:
        with pytest.raises(ValidationError):
            TickerResponse.model_validate(
                {"ask": "abc", "bid": "1", "last": "1", "volume": {}}
            )


# ---------------------------------------------------------------------------
# Misc model tests
# ---------------------------------------------------------------------------


class TestModels:
    """Tests for wire aliases and derived properties."""

    def test_snapshot_key(self) -> None:
        snapshot = TickerSnapshot(
            exchange="Gemini", base="BTC", quote="USD", ask=1, bid=1, last=1, volume=1
        )
        assert snapshot.key == TickerKey("Gemini", "BTC", "USD")
        assert snapshot.received_at > 0

    def test_orderbook_entry_accepts_amount(self) -> None:
        entry = OrderBookEntry.model_validate({"price": "10.5", "amount": "2"})
        assert entry.quantity == 2.0

    def test_cancel_details_aliases(self) -> None:
        details = CancelDetails.model_validate({"cancelledOrders": [1], "cancelRejects": [2]})
        assert details.cancelled_orders == [1]
        assert details.cancel_rejects == [2]

    def test_heartbeat_ok(self) -> None:
        assert HeartbeatResult(result="ok").ok
        assert not HeartbeatResult(result="error").ok

    def test_gemini_ticker_frozen(self) -> None:
        ticker = GeminiTicker(
            ask=1, bid=1, last=1, volume=TickerVolume(currency=1, usd=1, timestamp=1)
        )
        with pytest.raises(ValidationError):
            ticker.ask = 2
