"""Abstract base connector for REST exchange integrations.

Holds the exchange client state that every connector shares (enabled flag,
credentials, polling interval, configured pairs) and defines the operations
the ticker collector and account tooling rely on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import SecretStr

from gembot.config import ExchangeConfig
from gembot.connectors.http import HTTPTransport, Transport
from gembot.logging import get_logger
from gembot.models import ExchangeAccountInfo, TickerSnapshot


class BaseConnector(ABC):
    """Abstract exchange connector.

    A connector starts from ``set_defaults()`` and is configured with
    ``setup()``. Only a configuration reload mutates its state; the ticker
    collector reads it without synchronisation, so a reload during polling is
    picked up on the next iteration.

    Args:
        transport: HTTP transport. Defaults to an ``HTTPTransport`` created
            with the configured request timeout on first use.
    """

    def __init__(self, transport: Transport | None = None) -> None:
        self.name = ""
        self.enabled = False
        self.verbose = False
        self.authenticated_api_support = False
        self.api_key = ""
        self.api_secret = SecretStr("")
        self.rest_polling_delay = 10.0
        self.request_timeout_s = 15.0
        self.base_url = ""
        self.base_currencies: list[str] = []
        self.available_pairs: list[str] = []
        self.enabled_pairs: list[str] = []
        self._transport = transport
        self.set_defaults()
        self._logger = get_logger(f"connector.{self.name.lower()}")

    @abstractmethod
    def set_defaults(self) -> None:
        """Set the exchange name and default state."""

    def setup(self, config: ExchangeConfig) -> None:
        """Apply a (re)loaded exchange configuration.

        A disabled configuration only clears the enabled flag; everything else
        keeps its current value.

        Args:
            config: The exchange's configuration block.
        """
        if not config.enabled:
            self.enabled = False
            self._logger.info("exchange_disabled", exchange=self.name)
            return

        self.enabled = True
        self.authenticated_api_support = config.authenticated_api_support
        self.set_api_keys(config.api_key, config.api_secret)
        self.rest_polling_delay = config.rest_polling_delay
        self.request_timeout_s = config.request_timeout_s
        self.verbose = config.verbose
        self.base_url = config.base_url.rstrip("/")
        self.base_currencies = config.base_currency_list
        self.available_pairs = config.available_pair_list
        self.enabled_pairs = config.enabled_pair_list
        self._logger.info(
            "exchange_configured",
            exchange=self.name,
            enabled_pairs=len(self.enabled_pairs),
            authenticated=self.authenticated_api_support,
            polling_delay_s=self.rest_polling_delay,
        )

    def set_api_keys(self, api_key: str, api_secret: str | SecretStr) -> None:
        """Store the credential used for authenticated requests."""
        self.api_key = api_key
        if not isinstance(api_secret, SecretStr):
            api_secret = SecretStr(api_secret)
        self.api_secret = api_secret

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret.get_secret_value())

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            self._transport = HTTPTransport(timeout=self.request_timeout_s)
        return self._transport

    # --- Market Data ---

    @abstractmethod
    async def get_symbols(self) -> list[str]:
        """Return every symbol the exchange lists, as published."""

    @abstractmethod
    async def fetch_ticker_price(self, symbol: str) -> TickerSnapshot:
        """Fetch the ticker for ``symbol`` and normalise it into a snapshot."""

    # --- Account Information ---

    @abstractmethod
    async def get_exchange_account_info(self) -> ExchangeAccountInfo:
        """Return per-currency balances in exchange-agnostic form."""

    # --- Lifecycle ---

    async def close(self) -> None:
        """Close the transport."""
        if self._transport is not None:
            await self._transport.close()

    async def __aenter__(self) -> "BaseConnector":
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()
