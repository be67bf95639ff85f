"""Data models (Pydantic).

Re-exports all models for convenient imports:

    from gembot.models import CurrencyPair, TickerSnapshot, Order
"""

from gembot.models.account import (
    AccountCurrencyInfo,
    Balance,
    CancelDetails,
    CancelOrdersResult,
    ExchangeAccountInfo,
    HeartbeatResult,
    Order,
    OrderSide,
    OrderType,
    TradeHistoryEntry,
)
from gembot.models.market import Auction, AuctionEvent, OrderBook, OrderBookEntry, Trade
from gembot.models.pair import CurrencyPair
from gembot.models.ticker import (
    GeminiTicker,
    TickerKey,
    TickerResponse,
    TickerSnapshot,
    TickerVolume,
)

__all__ = [
    "AccountCurrencyInfo",
    "Auction",
    "AuctionEvent",
    "Balance",
    "CancelDetails",
    "CancelOrdersResult",
    "CurrencyPair",
    "ExchangeAccountInfo",
    "GeminiTicker",
    "HeartbeatResult",
    "Order",
    "OrderBook",
    "OrderBookEntry",
    "OrderSide",
    "OrderType",
    "TickerKey",
    "TickerResponse",
    "TickerSnapshot",
    "TickerVolume",
    "Trade",
    "TradeHistoryEntry",
]
