"""Structured logging for gembot (structlog over stdlib logging)."""

from __future__ import annotations

import logging
import sys

import structlog

# Event keys whose values never reach a renderer
_MASKED_KEYS = frozenset({"api_secret", "secret", "apisecret"})
_MASK = "**********"

# Chatty third-party loggers kept at WARNING so verbose exchange output stays readable
_QUIET_LOGGERS = ("aiohttp", "asyncio", "urllib3")


def _mask_credentials(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Replace credential values in an event dict with a fixed mask."""
    for key in event_dict.keys() & _MASKED_KEYS:
        event_dict[key] = _MASK
    return event_dict


def _pre_chain() -> list[structlog.types.Processor]:
    """Processors run on structlog events and on foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _mask_credentials,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: One JSON object per line; otherwise console output,
            colored when stdout is a terminal.
    """
    pre_chain = _pre_chain()
    renderers: list[structlog.types.Processor]
    if json_format:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger bound to ``name`` (e.g. "connector.gemini")."""
    return structlog.get_logger(name)
