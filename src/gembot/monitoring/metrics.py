"""Prometheus metrics for the ticker poller."""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
)


class MetricsCollector:
    """Prometheus metrics registry for gembot.

    Uses a custom CollectorRegistry so that several instances (and tests) do
    not collide on the global registry.

    Attributes:
        registry: The Prometheus CollectorRegistry used for all metrics.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize all Prometheus metrics.

        Args:
            registry: Custom registry. Creates a new one if not provided.
        """
        self._registry = registry or CollectorRegistry()

        # --- Counters ---
        self.ticker_updates = Counter(
            "gembot_ticker_updates_total",
            "Tickers fetched and published",
            ["exchange", "pair"],
            registry=self._registry,
        )
        self.ticker_errors = Counter(
            "gembot_ticker_errors_total",
            "Ticker fetches that failed",
            ["exchange", "pair", "kind"],
            registry=self._registry,
        )
        self.refresh_cycles = Counter(
            "gembot_refresh_cycles_total",
            "Refresh loop iterations started",
            ["exchange"],
            registry=self._registry,
        )
        self.pair_reconciliations = Counter(
            "gembot_pair_reconciliations_total",
            "Available-pair lists persisted after drifting from the exchange",
            ["exchange"],
            registry=self._registry,
        )

        # --- Gauges ---
        self.inflight_fetches = Gauge(
            "gembot_inflight_fetches",
            "Per-pair refresh units currently running",
            ["exchange"],
            registry=self._registry,
        )
        self.last_price = Gauge(
            "gembot_last_price",
            "Last traded price",
            ["exchange", "pair"],
            registry=self._registry,
        )

        # --- Histograms ---
        self.fetch_latency = Histogram(
            "gembot_ticker_fetch_latency_seconds",
            "Ticker fetch latency",
            ["exchange"],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self._registry,
        )

        # --- Info ---
        self.system_info = Info(
            "gembot_system",
            "gembot system information",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the collector registry."""
        return self._registry

    def record_ticker(self, exchange: str, pair: str, last: float, latency_s: float) -> None:
        """Record a successful ticker fetch.

        Args:
            exchange: Exchange name.
            pair: Pair symbol (e.g. "BTCUSD").
            last: Last traded price.
            latency_s: Fetch latency in seconds.
        """
        self.ticker_updates.labels(exchange=exchange, pair=pair).inc()
        self.last_price.labels(exchange=exchange, pair=pair).set(last)
        self.fetch_latency.labels(exchange=exchange).observe(latency_s)

    def record_ticker_error(self, exchange: str, pair: str, kind: str) -> None:
        """Record a failed ticker fetch.

        Args:
            exchange: Exchange name.
            pair: Pair symbol.
            kind: Failure class ("transport", "decode", "exchange", "other").
        """
        self.ticker_errors.labels(exchange=exchange, pair=pair, kind=kind).inc()

    def record_cycle(self, exchange: str) -> None:
        """Increment the refresh cycle counter."""
        self.refresh_cycles.labels(exchange=exchange).inc()

    def set_system_info(self, version: str, exchanges: list[str]) -> None:
        """Set system information labels."""
        self.system_info.info({"version": version, "exchanges": ",".join(exchanges)})

    def start_server(self, port: int = 9090) -> None:
        """Start HTTP metrics server for Prometheus scraping.

        Args:
            port: Port number to listen on.
        """
        start_http_server(port, registry=self._registry)
