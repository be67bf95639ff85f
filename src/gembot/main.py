"""gembot entry point.

Builds the Gemini connector, ticker cache and refresh loop from
configuration and polls until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import signal

from gembot import __version__
from gembot.config import AppConfig, ExchangeConfig, YamlConfigStore, load_config
from gembot.connectors.gemini import GeminiConnector
from gembot.core.collector import TickerCollector
from gembot.logging import get_logger, setup_logging
from gembot.monitoring.metrics import MetricsCollector
from gembot.storage.redis_cache import RedisTickerCache
from gembot.storage.ticker_cache import InMemoryTickerCache, TickerCache

EXCHANGE_NAME = "gemini"


def _exchange_config(config: AppConfig) -> ExchangeConfig:
    """Return the Gemini block with credentials from the environment applied.

    ``GEMBOT_GEMINI_API_KEY`` and ``GEMBOT_GEMINI_API_SECRET`` take precedence
    over the values in the YAML file.

    Args:
        config: Application configuration.
    """
    exchange_config = next(
        (cfg for key, cfg in config.exchange_configs.items() if key.lower() == EXCHANGE_NAME),
        ExchangeConfig(name=EXCHANGE_NAME),
    )
    overrides: dict[str, str] = {}
    api_key = os.environ.get(f"GEMBOT_{EXCHANGE_NAME.upper()}_API_KEY", "")
    api_secret = os.environ.get(f"GEMBOT_{EXCHANGE_NAME.upper()}_API_SECRET", "")
    if api_key:
        overrides["api_key"] = api_key
    if api_secret:
        overrides["api_secret"] = api_secret
    if overrides:
        exchange_config = ExchangeConfig.model_validate({**exchange_config.model_dump(), **overrides})
    return exchange_config


def _create_connector(config: AppConfig) -> GeminiConnector:
    """Create and configure the Gemini connector."""
    connector = GeminiConnector()
    connector.setup(_exchange_config(config))
    return connector


def _create_cache(config: AppConfig) -> TickerCache:
    """Create the ticker cache selected by ``storage.backend``.

    Raises:
        ValueError: On an unknown backend name.
    """
    backend = config.storage.backend.lower()
    if backend == "memory":
        return InMemoryTickerCache()
    if backend == "redis":
        return RedisTickerCache(redis_url=config.storage.redis.url, ttl=config.storage.ticker_ttl_s)
    raise ValueError(f"Unknown storage backend: {config.storage.backend!r}")


async def run(config: AppConfig) -> None:
    """Run the ticker poller until SIGINT/SIGTERM or until the exchange is disabled.

    Args:
        config: Validated application configuration.
    """
    logger = get_logger("main")
    logger.info("gembot_starting", version=__version__)

    connector = _create_connector(config)
    if not connector.enabled:
        logger.error("exchange_not_enabled", exchange=connector.name, msg="Nothing to poll. Exiting.")
        return

    cache = _create_cache(config)

    metrics: MetricsCollector | None = None
    if config.monitoring.enabled:
        metrics = MetricsCollector()
        metrics.set_system_info(version=__version__, exchanges=[connector.name])
        metrics.start_server(config.monitoring.port)
        logger.info("metrics_server_started", port=config.monitoring.port)

    collector = TickerCollector(
        connector=connector,
        cache=cache,
        config_store=YamlConfigStore(config.exchanges_file),
        metrics=metrics,
        max_concurrency=config.collector.max_concurrency,
    )

    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    try:
        if isinstance(cache, RedisTickerCache):
            await cache.connect()

        collector.start()
        logger.info(
            "ticker_collector_started",
            exchange=connector.name,
            pairs=connector.enabled_pairs,
            polling_delay_s=connector.rest_polling_delay,
        )

        # Either a signal or the loop exiting on its own (exchange disabled) ends the run
        waiters = {
            asyncio.create_task(shutdown_event.wait()),
            asyncio.create_task(collector.wait()),
        }
        _, pending = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()

    finally:
        logger.info("gembot_shutting_down")

        await collector.stop()
        status = collector.get_status()
        logger.info("ticker_collector_report", cycles=status["cycles"], pairs=status["pairs"])

        if isinstance(cache, RedisTickerCache):
            await cache.disconnect()

        await connector.close()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        logger.info("gembot_stopped")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="gembot - Gemini ticker poller",
    )
    parser.add_argument(
        "--config-dir",
        default="configs",
        help="Path to configuration directory (default: configs)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level override (default: from config)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    config = load_config(config_dir=args.config_dir)

    if args.log_level is not None:
        config.system.log_level = args.log_level
    if args.json_logs:
        config.system.json_logs = True

    setup_logging(log_level=config.system.log_level, json_format=config.system.json_logs)

    asyncio.run(run(config))


if __name__ == "__main__":
    main()
