"""Gemini exchange connector.

Public market data goes through ``send_public`` (plain GET, no auth), order
and account endpoints through ``send_authenticated`` (payload and HMAC
signature in headers, empty body). Both decode the JSON body into a pydantic
type and raise ``DecodeError`` when that fails; transport errors from aiohttp
propagate unchanged.
"""

from __future__ import annotations

import json
from decimal import Decimal
from functools import lru_cache
from typing import Any, TypeVar
from urllib.parse import urlencode

from pydantic import TypeAdapter, ValidationError

from gembot.config import DEFAULT_BASE_URL
from gembot.connectors.base import BaseConnector
from gembot.connectors.http import Transport
from gembot.connectors.normalizer import normalize_ticker, project_ticker
from gembot.connectors.signing import (
    NonceGenerator,
    ParamValue,
    build_envelope,
    sign_envelope,
    versioned_path,
)
from gembot.errors import CredentialsError, DecodeError, ExchangeAPIError, RequestBuildError
from gembot.models import (
    AccountCurrencyInfo,
    Auction,
    AuctionEvent,
    Balance,
    CancelOrdersResult,
    CurrencyPair,
    ExchangeAccountInfo,
    GeminiTicker,
    HeartbeatResult,
    Order,
    OrderBook,
    OrderSide,
    OrderType,
    TickerResponse,
    TickerSnapshot,
    Trade,
    TradeHistoryEntry,
)

T = TypeVar("T")

# Endpoint paths (relative to /v1/)
SYMBOLS = "symbols"
TICKER = "pubticker"
AUCTION = "auction"
AUCTION_HISTORY = "history"
ORDERBOOK = "book"
TRADES = "trades"
ORDERS = "orders"
ORDER_NEW = "order/new"
ORDER_CANCEL = "order/cancel"
ORDER_CANCEL_SESSION = "order/cancel/session"
ORDER_CANCEL_ALL = "order/cancel/all"
ORDER_STATUS = "order/status"
MYTRADES = "mytrades"
BALANCES = "balances"
HEARTBEAT = "heartbeat"


@lru_cache(maxsize=64)
def _adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


def _format_decimal(value: float | str | Decimal) -> str:
    """Render a number as a plain decimal string (no exponent, no trailing zeros).

    Examples:
        >>> _format_decimal(0.0000001)
        '0.0000001'
        >>> _format_decimal(1250.0)
        '1250'
    """
    d = Decimal(str(value))
    if not d.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    text = format(d, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def _encode_query(query: dict[str, ParamValue | None] | None) -> str:
    """URL-encode query parameters, skipping None and rendering bools as true/false."""
    if not query:
        return ""
    items = []
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        items.append((key, str(value)))
    return urlencode(items)


class GeminiConnector(BaseConnector):
    """REST connector for the Gemini exchange.

    Args:
        transport: HTTP transport (injected in tests).
        nonce_source: Callable returning strictly increasing nonces. Defaults
            to a ``NonceGenerator`` private to this connector.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        nonce_source: NonceGenerator | None = None,
    ) -> None:
        super().__init__(transport=transport)
        self._nonce = nonce_source or NonceGenerator()

    def set_defaults(self) -> None:
        self.name = "Gemini"
        self.enabled = False
        self.verbose = False
        self.rest_polling_delay = 10.0
        self.base_url = DEFAULT_BASE_URL

    # --- Dispatch ---

    def _url(self, path: str) -> str:
        return f"{self.base_url}{versioned_path(path)}"

    def _decode(self, path: str, raw: bytes, result_type: Any) -> Any:
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            raise DecodeError(f"Unable to JSON decode response from {path}: {e}", path=path, body=raw) from e

        if isinstance(data, dict) and data.get("result") == "error":
            reason = str(data.get("reason", ""))
            message = str(data.get("message") or reason or "unknown error")
            raise ExchangeAPIError(f"{self.name} {path}: {message}", reason=reason, payload=data)

        try:
            return _adapter(result_type).validate_python(data)
        except ValidationError as e:
            raise DecodeError(
                f"Response from {path} does not match {getattr(result_type, '__name__', result_type)}: {e}",
                path=path,
                body=raw,
            ) from e

    async def send_public(
        self,
        path: str,
        result_type: type[T] | Any,
        query: dict[str, ParamValue | None] | None = None,
    ) -> T:
        """GET a public endpoint and decode the response.

        Args:
            path: Endpoint path without the version prefix (e.g. "book/btcusd").
            result_type: Type to validate the JSON body against.
            query: Optional query parameters.

        Raises:
            DecodeError: If the body is not JSON or does not match ``result_type``.
            ExchangeAPIError: If the exchange returned its error envelope.
            aiohttp.ClientError: On transport failure.
        """
        url = self._url(path)
        encoded = _encode_query(query)
        if encoded:
            url = f"{url}?{encoded}"

        raw = await self.transport.request("GET", url)
        if self.verbose:
            self._logger.info("public_response", path=path, raw=raw.decode("utf-8", "replace"))
        return self._decode(path, raw, result_type)

    async def send_authenticated(
        self,
        method: str,
        path: str,
        result_type: type[T] | Any,
        params: dict[str, ParamValue] | None = None,
    ) -> T:
        """Sign and send a private request, then decode the response.

        The signed payload travels in the ``X-GEMINI-PAYLOAD`` header; the HTTP
        body is empty.

        Args:
            method: HTTP method (the exchange expects "POST").
            path: Endpoint path without the version prefix (e.g. "order/new").
            result_type: Type to validate the JSON body against.
            params: Extra payload fields (str, int, float or bool values).

        Raises:
            CredentialsError: If no API key/secret is configured.
            RequestBuildError: If a parameter cannot be encoded.
            DecodeError: If the body is not JSON or does not match ``result_type``.
            ExchangeAPIError: If the exchange returned its error envelope.
            aiohttp.ClientError: On transport failure.
        """
        if not self.has_credentials:
            raise CredentialsError(f"{self.name}: API key and secret are required for {path}")

        envelope = build_envelope(path, params, nonce=self._nonce())
        signed = sign_envelope(envelope, self.api_key, self.api_secret.get_secret_value())

        if self.verbose:
            self._logger.info(
                "authenticated_request",
                method=method,
                path=path,
                payload=json.dumps(envelope, separators=(",", ":")),
            )

        raw = await self.transport.request(method, self._url(path), headers=signed.as_headers(), body=b"")

        if self.verbose:
            self._logger.info("authenticated_response", path=path, raw=raw.decode("utf-8", "replace"))
        return self._decode(path, raw, result_type)

    # --- Public Market Data ---

    async def get_symbols(self) -> list[str]:
        return await self.send_public(SYMBOLS, list[str])

    async def get_ticker(self, symbol: str) -> GeminiTicker:
        """Fetch and decode ``pubticker/{symbol}``.

        Raises:
            RequestBuildError: If ``symbol`` cannot be split into a pair.
            DecodeError: If the volume object lacks the pair's currencies.
        """
        try:
            pair = CurrencyPair.from_symbol(symbol)
        except ValueError as e:
            raise RequestBuildError(str(e)) from e

        path = f"{TICKER}/{pair.symbol.lower()}"
        response = await self.send_public(path, TickerResponse)
        return project_ticker(pair, response, path=path)

    async def fetch_ticker_price(self, symbol: str) -> TickerSnapshot:
        ticker = await self.get_ticker(symbol)
        return normalize_ticker(self.name, CurrencyPair.from_symbol(symbol), ticker)

    async def get_auction(self, symbol: str) -> Auction:
        return await self.send_public(f"{AUCTION}/{symbol.lower()}", Auction)

    async def get_auction_history(
        self,
        symbol: str,
        since: int | None = None,
        limit_auction_results: int | None = None,
        include_indicative: bool | None = None,
    ) -> list[AuctionEvent]:
        query = {
            "since": since,
            "limit_auction_results": limit_auction_results,
            "include_indicative": include_indicative,
        }
        return await self.send_public(
            f"{AUCTION}/{symbol.lower()}/{AUCTION_HISTORY}", list[AuctionEvent], query
        )

    async def get_orderbook(
        self,
        symbol: str,
        limit_bids: int | None = None,
        limit_asks: int | None = None,
    ) -> OrderBook:
        query = {"limit_bids": limit_bids, "limit_asks": limit_asks}
        return await self.send_public(f"{ORDERBOOK}/{symbol.lower()}", OrderBook, query)

    async def get_trades(
        self,
        symbol: str,
        since: int | None = None,
        limit_trades: int | None = None,
        include_breaks: bool | None = None,
    ) -> list[Trade]:
        query = {"since": since, "limit_trades": limit_trades, "include_breaks": include_breaks}
        return await self.send_public(f"{TRADES}/{symbol.lower()}", list[Trade], query)

    # --- Orders ---

    async def new_order(
        self,
        symbol: str,
        amount: float | str | Decimal,
        price: float | str | Decimal,
        side: OrderSide | str,
        order_type: OrderType | str = OrderType.EXCHANGE_LIMIT,
        client_order_id: str | None = None,
    ) -> Order:
        """Place a new order.

        Args:
            symbol: Exchange symbol (e.g. "btcusd").
            amount: Quantity in base currency.
            price: Limit price in quote currency.
            side: "buy" or "sell".
            order_type: Order type (default "exchange limit").
            client_order_id: Optional caller-chosen id echoed back by the exchange.

        Returns:
            The created order.
        """
        try:
            params: dict[str, ParamValue] = {
                "symbol": symbol,
                "amount": _format_decimal(amount),
                "price": _format_decimal(price),
                "side": OrderSide(side.lower()).value,
                "type": OrderType(order_type.lower()).value,
            }
        except (ArithmeticError, ValueError) as e:
            raise RequestBuildError(f"Invalid order parameters: {e}") from e
        if client_order_id is not None:
            params["client_order_id"] = client_order_id

        order = await self.send_authenticated("POST", ORDER_NEW, Order, params)
        self._logger.info(
            "order_placed",
            exchange=self.name,
            order_id=order.order_id,
            symbol=symbol,
            side=params["side"],
            amount=params["amount"],
            price=params["price"],
        )
        return order

    async def cancel_order(self, order_id: int) -> Order:
        order = await self.send_authenticated("POST", ORDER_CANCEL, Order, {"order_id": order_id})
        self._logger.info("order_cancelled", exchange=self.name, order_id=order_id)
        return order

    async def cancel_orders(self, session_only: bool = False) -> CancelOrdersResult:
        """Cancel all orders, or only those opened by this API session."""
        path = ORDER_CANCEL_SESSION if session_only else ORDER_CANCEL_ALL
        result = await self.send_authenticated("POST", path, CancelOrdersResult)
        self._logger.info(
            "orders_cancelled",
            exchange=self.name,
            session_only=session_only,
            cancelled=len(result.details.cancelled_orders),
            rejected=len(result.details.cancel_rejects),
        )
        return result

    async def get_order_status(self, order_id: int) -> Order:
        return await self.send_authenticated("POST", ORDER_STATUS, Order, {"order_id": order_id})

    async def get_orders(self) -> list[Order]:
        """Return all live orders."""
        return await self.send_authenticated("POST", ORDERS, list[Order])

    async def get_trade_history(self, symbol: str, timestamp: int | None = None) -> list[TradeHistoryEntry]:
        """Return the account's fills for ``symbol``, optionally only those after ``timestamp``."""
        params: dict[str, ParamValue] = {"symbol": symbol}
        if timestamp is not None:
            params["timestamp"] = timestamp
        return await self.send_authenticated("POST", MYTRADES, list[TradeHistoryEntry], params)

    # --- Account ---

    async def get_balances(self) -> list[Balance]:
        return await self.send_authenticated("POST", BALANCES, list[Balance])

    async def get_exchange_account_info(self) -> ExchangeAccountInfo:
        balances = await self.get_balances()
        return ExchangeAccountInfo(
            exchange_name=self.name,
            currencies=[
                AccountCurrencyInfo(
                    currency_name=b.currency,
                    total_value=b.amount,
                    hold=b.amount - b.available,
                )
                for b in balances
            ],
        )

    async def post_heartbeat(self) -> bool:
        """Keep a session alive when the API key requires heartbeats."""
        response = await self.send_authenticated("POST", HEARTBEAT, HeartbeatResult)
        return response.ok
