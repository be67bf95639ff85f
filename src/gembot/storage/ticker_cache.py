"""Ticker cache interface and in-process implementation."""

from __future__ import annotations

import threading
from typing import Protocol

from gembot.models import TickerKey, TickerSnapshot


class TickerCache(Protocol):
    """Latest ticker snapshot per (exchange, base, quote).

    Publishes to distinct keys never interfere; publishes to the same key are
    last-writer-wins. Readers must handle a missing entry (pair not polled yet).
    """

    async def publish(self, exchange: str, base: str, quote: str, snapshot: TickerSnapshot) -> None:
        """Store ``snapshot`` as the latest reading for the key."""

    async def get(self, exchange: str, base: str, quote: str) -> TickerSnapshot | None:
        """Return the latest snapshot for the key, or None."""

    async def get_all(self, exchange: str) -> dict[str, TickerSnapshot]:
        """Return all snapshots of ``exchange`` keyed by pair symbol (e.g. "BTCUSD")."""


class InMemoryTickerCache:
    """Dict-backed TickerCache owned by one running client.

    The lock makes it safe to read from threads other than the event loop's.
    """

    def __init__(self) -> None:
        self._tickers: dict[TickerKey, TickerSnapshot] = {}
        self._lock = threading.Lock()

    async def publish(self, exchange: str, base: str, quote: str, snapshot: TickerSnapshot) -> None:
        with self._lock:
            self._tickers[TickerKey(exchange, base, quote)] = snapshot

    async def get(self, exchange: str, base: str, quote: str) -> TickerSnapshot | None:
        with self._lock:
            return self._tickers.get(TickerKey(exchange, base, quote))

    async def get_all(self, exchange: str) -> dict[str, TickerSnapshot]:
        with self._lock:
            return {
                f"{key.base}{key.quote}": snapshot
                for key, snapshot in self._tickers.items()
                if key.exchange == exchange
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._tickers)
