"""Redis-backed ticker cache with Pub/Sub update events.

Lets several processes share the tickers published by one poller: snapshots
are stored as JSON under per-pair keys with a TTL, and every publish is also
announced on a Pub/Sub channel for readers that want push updates.
"""

import redis.asyncio as aioredis
from pydantic import ValidationError

from gembot.logging import get_logger
from gembot.models import TickerSnapshot

# Redis key patterns
_KEY_TICKER = "gembot:ticker:{exchange}:{base}:{quote}"
_CHANNEL_TICKER_UPDATE = "gembot:ticker_updates"

# Default TTL for cached tickers (seconds)
_DEFAULT_TTL = 60


class RedisTickerCache:
    """Async Redis TickerCache.

    Args:
        redis_url: Redis connection URL (e.g. "redis://localhost:6379/0").
        ttl: Time-to-live in seconds for cached tickers.
        client: Optional pre-configured redis client (for testing).
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        ttl: int = _DEFAULT_TTL,
        client: aioredis.Redis | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._ttl = ttl
        self._client: aioredis.Redis | None = client
        self._logger = get_logger("redis_cache")

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if self._client is None:
            self._client = aioredis.from_url(self._redis_url)
        await self._client.ping()
        self._logger.info("redis_connected", url=self._redis_url)

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

        self._logger.info("redis_disconnected")

    def _require_client(self) -> aioredis.Redis:
        if self._client is None:
            raise ConnectionError("Redis not connected")
        return self._client

    # --- Ticker Cache ---

    async def publish(self, exchange: str, base: str, quote: str, snapshot: TickerSnapshot) -> None:
        """Store a ticker snapshot and announce it on the update channel."""
        client = self._require_client()
        key = _KEY_TICKER.format(exchange=exchange, base=base, quote=quote)
        data = snapshot.model_dump_json()
        await client.set(key, data, ex=self._ttl)
        await client.publish(_CHANNEL_TICKER_UPDATE, data)

    async def get(self, exchange: str, base: str, quote: str) -> TickerSnapshot | None:
        """Retrieve a cached ticker, or None if absent or expired."""
        client = self._require_client()
        raw = await client.get(_KEY_TICKER.format(exchange=exchange, base=base, quote=quote))
        if raw is None:
            return None
        return _deserialize_ticker(raw)

    async def get_all(self, exchange: str) -> dict[str, TickerSnapshot]:
        """Retrieve every cached ticker of an exchange keyed by pair symbol."""
        client = self._require_client()
        pattern = _KEY_TICKER.format(exchange=exchange, base="*", quote="*")

        keys = []
        async for key in client.scan_iter(match=pattern):
            keys.append(key)

        result: dict[str, TickerSnapshot] = {}
        if not keys:
            return result

        values = await client.mget(keys)
        for raw in values:
            if raw is None:
                continue
            snapshot = _deserialize_ticker(raw)
            if snapshot is not None:
                result[f"{snapshot.base}{snapshot.quote}"] = snapshot
        return result

    # --- Context Manager ---

    async def __aenter__(self) -> "RedisTickerCache":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


def _deserialize_ticker(raw: str | bytes) -> TickerSnapshot | None:
    """Deserialize a JSON string from Redis into a TickerSnapshot."""
    try:
        return TickerSnapshot.model_validate_json(raw)
    except ValidationError:
        return None
