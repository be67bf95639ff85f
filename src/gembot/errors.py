"""Exception hierarchy for gembot.

Transport failures have no class here: ``aiohttp.ClientError`` and
``asyncio.TimeoutError`` raised by the transport propagate to callers as-is,
so ``except GembotError`` never catches a network fault.
"""

from __future__ import annotations

from typing import Any


class GembotError(Exception):
    """Base class for all errors raised by gembot itself."""


class RequestBuildError(GembotError, ValueError):
    """A request could not be built or encoded (programmer/configuration error).

    Raised before anything is sent over the network.
    """


class CredentialsError(GembotError):
    """An authenticated endpoint was called without an API key and secret."""


class DecodeError(GembotError):
    """The exchange answered, but the body could not be decoded.

    Covers bodies that are not JSON (e.g. an HTML error page from a proxy) and
    JSON that does not match the expected response shape.

    Attributes:
        path: Endpoint path the response belongs to.
        body: Raw response body.
    """

    def __init__(self, message: str, path: str = "", body: bytes = b"") -> None:
        super().__init__(message)
        self.path = path
        self.body = body


class ExchangeAPIError(GembotError):
    """The exchange returned its error envelope (``{"result": "error", ...}``).

    Attributes:
        reason: Machine-readable reason code (e.g. "InvalidNonce").
        payload: The decoded error object.
    """

    def __init__(self, message: str, reason: str = "", payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.payload = payload or {}


class ConfigStoreError(GembotError):
    """Reading or persisting exchange configuration failed."""
