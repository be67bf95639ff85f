"""Authenticated (order and account) models."""

import enum

from pydantic import BaseModel, Field


class OrderSide(str, enum.Enum):
    """Order side."""

    BUY = "buy"
    SELL = "sell"


class OrderType(str, enum.Enum):
    """Order type accepted by ``order/new``."""

    EXCHANGE_LIMIT = "exchange limit"
    EXCHANGE_STOP_LIMIT = "exchange stop limit"


class Order(BaseModel):
    """Order status as returned by ``order/new``, ``order/status`` and friends.

    Attributes:
        order_id: Exchange-assigned order id.
        client_order_id: Caller-supplied id, if any.
        symbol: Lowercase exchange symbol (e.g. "btcusd").
        price: Limit price.
        avg_execution_price: Average price of executed quantity.
        side: "buy" or "sell".
        type: Order type (e.g. "exchange limit").
        is_live: Whether the order is still on the book.
        is_cancelled: Whether the order has been cancelled.
        executed_amount: Quantity filled so far.
        remaining_amount: Quantity still open.
        original_amount: Quantity originally ordered.
    """

    order_id: int
    client_order_id: str | None = None
    symbol: str = ""
    exchange: str = "gemini"
    price: float = 0.0
    avg_execution_price: float = 0.0
    side: str = ""
    type: str = ""
    timestamp: int = 0
    timestampms: int = 0
    is_live: bool = False
    is_cancelled: bool = False
    was_forced: bool = False
    executed_amount: float = 0.0
    remaining_amount: float = 0.0
    original_amount: float = 0.0


class CancelDetails(BaseModel):
    """Ids affected by a bulk cancel."""

    cancelled_orders: list[int] = Field(default_factory=list, alias="cancelledOrders")
    cancel_rejects: list[int] = Field(default_factory=list, alias="cancelRejects")

    model_config = {"populate_by_name": True}


class CancelOrdersResult(BaseModel):
    """Response of ``order/cancel/all`` and ``order/cancel/session``."""

    result: str
    details: CancelDetails = Field(default_factory=CancelDetails)


class TradeHistoryEntry(BaseModel):
    """One of the account's own fills from ``mytrades``."""

    price: float
    amount: float
    timestamp: int
    timestampms: int = 0
    type: str = ""
    aggressor: bool = False
    fee_currency: str = ""
    fee_amount: float = 0.0
    tid: int
    order_id: int
    client_order_id: str | None = None
    exchange: str = "gemini"
    is_auction_fill: bool = False


class Balance(BaseModel):
    """Balance of one currency from ``balances``.

    Attributes:
        currency: Currency code (e.g. "BTC").
        amount: Total balance.
        available: Balance available for trading.
        available_for_withdrawal: Balance available for withdrawal.
    """

    model_config = {"populate_by_name": True}

    currency: str
    amount: float
    available: float
    available_for_withdrawal: float = Field(default=0.0, alias="availableForWithdrawal")
    type: str = "exchange"


class AccountCurrencyInfo(BaseModel):
    """Exchange-agnostic balance of one currency.

    Attributes:
        currency_name: Currency code.
        total_value: Total balance.
        hold: Balance locked in open orders (total minus available).
    """

    currency_name: str
    total_value: float
    hold: float


class ExchangeAccountInfo(BaseModel):
    """Exchange-agnostic account summary."""

    exchange_name: str
    currencies: list[AccountCurrencyInfo] = Field(default_factory=list)


class HeartbeatResult(BaseModel):
    """Response of ``heartbeat``; the exchange sends ``"ok"``."""

    result: bool | str

    @property
    def ok(self) -> bool:
        return self.result is True or self.result == "ok"
