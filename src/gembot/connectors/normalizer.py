"""Symbol handling and ticker projection for Gemini data.

Converts the exchange's raw shapes into the internal models with consistent
upper-case symbols.
"""

from collections.abc import Iterable

from gembot.errors import DecodeError
from gembot.models import CurrencyPair, GeminiTicker, TickerResponse, TickerSnapshot, TickerVolume

_REFERENCE_CURRENCY = "USD"


def normalize_symbol(raw_symbol: str) -> str:
    """Return the canonical (upper-case, unpadded) form of an exchange symbol.

    Examples:
        >>> normalize_symbol("btcusd")
        'BTCUSD'
    """
    return raw_symbol.strip().upper()


def symbol_difference(first: Iterable[str], second: Iterable[str]) -> list[str]:
    """Symmetric difference of two symbol lists, keeping first-seen order.

    Symbols only in ``first`` come before symbols only in ``second``.

    Examples:
        >>> symbol_difference(["BTCUSD"], ["BTCUSD", "ETHUSD"])
        ['ETHUSD']
    """
    first = list(first)
    second = list(second)
    first_set, second_set = set(first), set(second)
    diff = [s for s in first if s not in second_set]
    diff += [s for s in second if s not in first_set]
    return list(dict.fromkeys(diff))


def _volume_float(volume: dict[str, str | float | int], key: str, path: str) -> float:
    try:
        return float(volume[key])
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Ticker volume {key!r} is not numeric: {volume[key]!r}", path=path) from e


def project_ticker(pair: CurrencyPair, response: TickerResponse, path: str = "") -> GeminiTicker:
    """Project a first-stage ticker response onto the typed ticker.

    The volume object is keyed by the pair's currencies, so the base currency
    key is looked up dynamically. The reference volume is the ``USD`` entry,
    or the quote currency's entry for pairs not quoted in USD.

    Raises:
        DecodeError: If the base currency, reference or timestamp entry is missing.
    """
    volume = response.volume
    if pair.base not in volume:
        raise DecodeError(f"Ticker volume has no {pair.base!r} entry", path=path)

    reference = _REFERENCE_CURRENCY if _REFERENCE_CURRENCY in volume else pair.quote
    if reference not in volume:
        raise DecodeError(
            f"Ticker volume has neither {_REFERENCE_CURRENCY!r} nor {pair.quote!r} entry",
            path=path,
        )

    timestamp = volume.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise DecodeError("Ticker volume has no numeric 'timestamp' entry", path=path)

    return GeminiTicker(
        ask=response.ask,
        bid=response.bid,
        last=response.last,
        volume=TickerVolume(
            currency=_volume_float(volume, pair.base, path),
            usd=_volume_float(volume, reference, path),
            timestamp=int(timestamp),
        ),
    )


def normalize_ticker(exchange: str, pair: CurrencyPair, ticker: GeminiTicker) -> TickerSnapshot:
    """Build the cache snapshot for a decoded ticker."""
    return TickerSnapshot(
        exchange=exchange,
        base=pair.base,
        quote=pair.quote,
        ask=ticker.ask,
        bid=ticker.bid,
        last=ticker.last,
        volume=ticker.volume.usd,
        base_volume=ticker.volume.currency,
        volume_timestamp=ticker.volume.timestamp,
    )
