"""Ticker models: raw exchange response, decoded ticker and cache snapshot."""

import time
from typing import NamedTuple

from pydantic import BaseModel, Field


class TickerKey(NamedTuple):
    """Cache key for a ticker snapshot."""

    exchange: str
    base: str
    quote: str


class TickerResponse(BaseModel):
    """First decode stage of ``pubticker``.

    ``volume`` has one key per currency of the pair plus ``timestamp``, so it is
    kept as a plain mapping here and projected by ``GeminiTicker``.
    """

    ask: float
    bid: float
    last: float
    volume: dict[str, str | float | int]


class TickerVolume(BaseModel):
    """Projected 24h volume of a ticker.

    Attributes:
        currency: Volume in the base currency.
        usd: Volume in the reference currency (USD, or the pair's quote currency).
        timestamp: Exchange timestamp of the volume figures, in milliseconds.
    """

    model_config = {"frozen": True}

    currency: float
    usd: float
    timestamp: int


class GeminiTicker(BaseModel):
    """Decoded ``pubticker`` response."""

    model_config = {"frozen": True}

    ask: float
    bid: float
    last: float
    volume: TickerVolume


class TickerSnapshot(BaseModel):
    """Immutable ticker reading for one pair, as stored in the ticker cache.

    Attributes:
        exchange: Exchange name (e.g. "Gemini").
        base: Base currency.
        quote: Quote currency.
        ask: Best ask price.
        bid: Best bid price.
        last: Last traded price.
        volume: 24h volume in the reference currency.
        base_volume: 24h volume in the base currency.
        volume_timestamp: Exchange timestamp of the volume figures (ms).
        received_at: Local unix time the snapshot was built.
    """

    model_config = {"frozen": True}

    exchange: str
    base: str
    quote: str
    ask: float
    bid: float
    last: float
    volume: float
    base_volume: float = 0.0
    volume_timestamp: int = 0
    received_at: float = Field(default_factory=time.time)

    @property
    def key(self) -> TickerKey:
        return TickerKey(self.exchange, self.base, self.quote)

    @property
    def currency_pair(self) -> str:
        """Underscore-joined pair (e.g. "BTC_USD")."""
        return f"{self.base}_{self.quote}"
