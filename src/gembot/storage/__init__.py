"""Ticker caches (in-process and Redis).

Re-exports core storage classes:

    from gembot.storage import InMemoryTickerCache, RedisTickerCache, TickerCache
"""

from gembot.storage.redis_cache import RedisTickerCache
from gembot.storage.ticker_cache import InMemoryTickerCache, TickerCache

__all__ = [
    "InMemoryTickerCache",
    "RedisTickerCache",
    "TickerCache",
]
