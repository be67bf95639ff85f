"""Ticker refresh loop.

Polls the ticker of every enabled pair on a fixed interval and publishes the
normalised snapshots into an injected ticker cache.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

import aiohttp

from gembot.config import ConfigStore
from gembot.connectors.base import BaseConnector
from gembot.core.pairs import reconcile_available_pairs
from gembot.errors import DecodeError, ExchangeAPIError, GembotError
from gembot.logging import get_logger
from gembot.monitoring.metrics import MetricsCollector
from gembot.storage.ticker_cache import TickerCache


class TickerCollector:
    """Drives the ticker refresh loop for one connector.

    Each iteration launches one task per enabled pair and then sleeps for the
    connector's polling delay without waiting for those tasks. When fetches
    take longer than the interval, units of consecutive iterations overlap and
    may publish the same pair out of order; the last write wins. Fetches are
    idempotent GETs, so this is accepted. The semaphore caps how many fetches
    are in flight at once, however many iterations overlap.

    The loop runs while ``connector.enabled`` is set, checked once per
    interval. Clearing it (``disable()``) lets in-flight units finish.

    Args:
        connector: Exchange connector to poll.
        cache: Destination for ticker snapshots.
        config_store: Persisted configuration for pair reconciliation at
            startup. Reconciliation is skipped when None.
        metrics: Optional Prometheus metrics.
        max_concurrency: Maximum number of concurrent ticker fetches.
    """

    def __init__(
        self,
        connector: BaseConnector,
        cache: TickerCache,
        config_store: ConfigStore | None = None,
        metrics: MetricsCollector | None = None,
        max_concurrency: int = 8,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._connector = connector
        self._cache = cache
        self._config_store = config_store
        self._metrics = metrics
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._cycles = 0
        self._stats: dict[str, _PairStats] = {}
        self._logger = get_logger("ticker_collector")

    @property
    def is_running(self) -> bool:
        """Whether the driver task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def cycles(self) -> int:
        return self._cycles

    def start(self) -> None:
        """Start the refresh loop in a background task."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self.run(), name=f"ticker-collector-{self._connector.name}")

    async def run(self) -> None:
        """Reconcile pairs once, then refresh tickers until the connector is disabled."""
        connector = self._connector
        if connector.verbose:
            self._logger.info(
                "polling_configured",
                exchange=connector.name,
                polling_delay_s=connector.rest_polling_delay,
                enabled_pairs=connector.enabled_pairs,
            )

        if self._config_store is not None:
            try:
                updated = await reconcile_available_pairs(connector, self._config_store)
            except Exception:
                # Polling goes ahead with the configured pairs
                self._logger.exception("pair_reconciliation_failed", exchange=connector.name)
                updated = None
            if updated is not None and self._metrics is not None:
                self._metrics.pair_reconciliations.labels(exchange=connector.name).inc()

        while connector.enabled:
            self.refresh_once()
            await asyncio.sleep(connector.rest_polling_delay)

        self._logger.info("ticker_collector_exited", exchange=connector.name, cycles=self._cycles)

    def refresh_once(self) -> list[asyncio.Task]:
        """Launch one refresh unit per enabled pair without waiting for them.

        Returns:
            The launched tasks.
        """
        self._cycles += 1
        if self._metrics is not None:
            self._metrics.record_cycle(self._connector.name)

        tasks = []
        for pair in list(self._connector.enabled_pairs):
            task = asyncio.create_task(self._refresh_pair(pair))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            tasks.append(task)
        return tasks

    async def wait(self) -> None:
        """Wait until the driver task exits."""
        if self._task is not None:
            await asyncio.shield(self._task)

    def disable(self) -> None:
        """Stop starting new iterations; the loop exits at the next interval boundary."""
        self._connector.enabled = False

    async def wait_inflight(self) -> None:
        """Wait for every launched refresh unit to finish."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def stop(self) -> None:
        """Disable polling, end the driver task and drain in-flight units."""
        self.disable()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.wait_inflight()
        self._logger.info("ticker_collector_stopped", exchange=self._connector.name)

    def get_status(self) -> dict:
        """Get the current state of the loop and per-pair counters.

        Returns:
            Dict with running flag, cycle count, in-flight units and
            per-pair success/failure counts with last update times.
        """
        return {
            "running": self.is_running,
            "cycles": self._cycles,
            "inflight": len(self._inflight),
            "pairs": {
                pair: {
                    "updates": stats.updates,
                    "failures": stats.failures,
                    "last_update": stats.last_update,
                    "last_error": stats.last_error,
                }
                for pair, stats in self._stats.items()
            },
        }

    # --- Internal Methods ---

    async def _refresh_pair(self, pair: str) -> None:
        """Fetch, publish and log the ticker of one pair. Never raises."""
        connector = self._connector
        exchange = connector.name
        stats = self._stats.setdefault(pair, _PairStats())

        async with self._semaphore:
            if self._metrics is not None:
                self._metrics.inflight_fetches.labels(exchange=exchange).inc()
            started = time.monotonic()
            try:
                snapshot = await connector.fetch_ticker_price(pair)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                self._record_failure(stats, pair, "transport", e)
                return
            except DecodeError as e:
                self._record_failure(stats, pair, "decode", e)
                return
            except ExchangeAPIError as e:
                self._record_failure(stats, pair, "exchange", e)
                return
            except GembotError as e:
                self._record_failure(stats, pair, "other", e)
                return
            except Exception as e:
                self._logger.exception("ticker_refresh_error", exchange=exchange, pair=pair)
                self._record_failure(stats, pair, "other", e)
                return
            finally:
                if self._metrics is not None:
                    self._metrics.inflight_fetches.labels(exchange=exchange).dec()
            latency = time.monotonic() - started

        try:
            await self._cache.publish(exchange, snapshot.base, snapshot.quote, snapshot)
        except Exception:
            self._logger.exception("ticker_publish_failed", exchange=exchange, pair=pair)
            stats.failures += 1
            return

        stats.updates += 1
        stats.last_update = time.time()
        if self._metrics is not None:
            self._metrics.record_ticker(exchange, pair, snapshot.last, latency)

        self._logger.info(
            "ticker_updated",
            exchange=exchange,
            pair=pair,
            last=snapshot.last,
            bid=snapshot.bid,
            ask=snapshot.ask,
            volume=snapshot.volume,
        )

    def _record_failure(self, stats: "_PairStats", pair: str, kind: str, error: Exception) -> None:
        stats.failures += 1
        stats.last_error = str(error) or type(error).__name__
        if self._metrics is not None:
            self._metrics.record_ticker_error(self._connector.name, pair, kind)
        self._logger.warning(
            "ticker_fetch_failed",
            exchange=self._connector.name,
            pair=pair,
            kind=kind,
            error=stats.last_error,
        )


@dataclass
class _PairStats:
    """Per-pair refresh counters."""

    updates: int = 0
    failures: int = 0
    last_update: float | None = None
    last_error: str | None = None
