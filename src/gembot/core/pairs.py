"""Reconciliation of configured available pairs against the exchange's symbol list."""

from __future__ import annotations

import asyncio

import aiohttp

from gembot.config import ConfigStore
from gembot.connectors.base import BaseConnector
from gembot.connectors.normalizer import normalize_symbol, symbol_difference
from gembot.errors import ConfigStoreError, GembotError
from gembot.logging import get_logger

logger = get_logger("pairs")


async def reconcile_available_pairs(
    connector: BaseConnector, config_store: ConfigStore
) -> list[str] | None:
    """Persist the exchange's symbol list if it drifted from the configured one.

    The freshly fetched, upper-cased list replaces the persisted
    ``available_pairs`` outright; enabled pairs are left alone. Every failure
    is logged and swallowed: polling continues with the pairs already
    configured. Store calls run in a worker thread.

    Args:
        connector: Connector whose ``available_pairs`` describe the local view.
        config_store: Store holding the persisted exchange configuration.

    Returns:
        The newly persisted list, or None if nothing was written.
    """
    exchange = connector.name
    try:
        symbols = await connector.get_symbols()
    except (aiohttp.ClientError, asyncio.TimeoutError, GembotError) as e:
        logger.error("available_symbols_fetch_failed", exchange=exchange, error=str(e))
        return None

    exchange_pairs = list(dict.fromkeys(normalize_symbol(s) for s in symbols))
    diff = symbol_difference(connector.available_pairs, exchange_pairs)
    if not diff:
        logger.debug("available_pairs_in_sync", exchange=exchange, count=len(exchange_pairs))
        return None

    try:
        config = await asyncio.to_thread(config_store.get_exchange_config, exchange)
    except ConfigStoreError as e:
        logger.error("exchange_config_load_failed", exchange=exchange, error=str(e))
        return None

    logger.info("updating_available_pairs", exchange=exchange, difference=diff)
    updated = config.model_copy(update={"available_pairs": ",".join(exchange_pairs)})
    try:
        await asyncio.to_thread(config_store.update_exchange_config, updated)
    except ConfigStoreError as e:
        logger.error("exchange_config_update_failed", exchange=exchange, error=str(e))
        return None

    return exchange_pairs
