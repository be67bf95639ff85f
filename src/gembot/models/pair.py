"""Currency pair model."""

from pydantic import BaseModel

# Quote currencies listed on Gemini, longest first so "GUSD" wins over "USD"
_QUOTE_CURRENCIES = ("GUSD", "USDT", "USDC", "USD", "EUR", "GBP", "SGD", "BTC", "ETH", "DAI")


class CurrencyPair(BaseModel):
    """A base/quote trading pair.

    Attributes:
        base: Base currency (e.g. "BTC").
        quote: Quote currency (e.g. "USD").
    """

    model_config = {"frozen": True}

    base: str
    quote: str

    @classmethod
    def from_symbol(cls, symbol: str) -> "CurrencyPair":
        """Split an exchange symbol into a pair.

        The symbol is upper-cased and split on a known quote-currency suffix;
        unknown quotes fall back to a three-character base.

        Examples:
            >>> CurrencyPair.from_symbol("btcusd")
            CurrencyPair(base='BTC', quote='USD')
            >>> CurrencyPair.from_symbol("ETHBTC")
            CurrencyPair(base='ETH', quote='BTC')
        """
        s = symbol.strip().upper()
        for quote in _QUOTE_CURRENCIES:
            if s.endswith(quote) and len(s) > len(quote):
                return cls(base=s[: -len(quote)], quote=quote)
        if len(s) <= 3:
            raise ValueError(f"Cannot split symbol {symbol!r} into base and quote")
        return cls(base=s[:3], quote=s[3:])

    @property
    def symbol(self) -> str:
        """Exchange symbol (e.g. "BTCUSD")."""
        return f"{self.base}{self.quote}"

    @property
    def display(self) -> str:
        """Underscore-joined form (e.g. "BTC_USD")."""
        return f"{self.base}_{self.quote}"

    def __str__(self) -> str:
        return self.symbol
