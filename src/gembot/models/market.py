"""Public market data models (order book, trades, auctions).

Gemini encodes prices and quantities as JSON strings and ids/timestamps as
JSON numbers; pydantic's lax mode parses the decimal strings into floats.
"""

from pydantic import AliasChoices, BaseModel, Field


class OrderBookEntry(BaseModel):
    """Single price level in an order book.

    Attributes:
        price: Price at this level.
        quantity: Available quantity at this price (``amount`` on the wire).
    """

    model_config = {"frozen": True}

    price: float
    quantity: float = Field(validation_alias=AliasChoices("amount", "quantity"))


class OrderBook(BaseModel):
    """Order book snapshot from ``book/{symbol}``.

    Bids are in descending price order, asks ascending, as sent by the exchange.
    """

    model_config = {"frozen": True}

    bids: list[OrderBookEntry] = Field(default_factory=list)
    asks: list[OrderBookEntry] = Field(default_factory=list)

    @property
    def best_bid(self) -> float:
        """Highest bid price."""
        if not self.bids:
            return 0.0
        return self.bids[0].price

    @property
    def best_ask(self) -> float:
        """Lowest ask price."""
        if not self.asks:
            return 0.0
        return self.asks[0].price

    @property
    def spread(self) -> float:
        """Absolute spread between best ask and best bid."""
        if not self.bids or not self.asks:
            return 0.0
        return self.best_ask - self.best_bid


class Trade(BaseModel):
    """Public trade from ``trades/{symbol}``.

    Attributes:
        timestamp: Trade time in seconds.
        timestampms: Trade time in milliseconds.
        tid: Trade id.
        price: Execution price.
        amount: Executed quantity.
        exchange: Always "gemini".
        type: Taker side ("buy", "sell", or "auction").
        broken: Whether the trade was broken by the exchange.
    """

    model_config = {"frozen": True}

    timestamp: int
    timestampms: int = 0
    tid: int
    price: float
    amount: float
    exchange: str = "gemini"
    type: str = ""
    broken: bool = False


class Auction(BaseModel):
    """Current auction state from ``auction/{symbol}``.

    Fields describing the last auction are absent until one has run.
    """

    model_config = {"frozen": True}

    last_auction_price: float = 0.0
    last_auction_quantity: float = 0.0
    last_highest_bid_price: float = 0.0
    last_lowest_ask_price: float = 0.0
    next_update_ms: int = 0
    next_auction_ms: int = 0
    last_auction_eid: int = 0


class AuctionEvent(BaseModel):
    """One entry of ``auction/{symbol}/history``."""

    model_config = {"frozen": True}

    auction_id: int
    auction_price: float = 0.0
    auction_quantity: float = 0.0
    eid: int
    highest_bid_price: float = 0.0
    lowest_ask_price: float = 0.0
    auction_result: str = ""
    timestamp: int
    timestampms: int = 0
    event_type: str = ""
