"""Async HTTP transport used by the exchange connectors."""

from __future__ import annotations

from typing import Protocol

import aiohttp

from gembot.logging import get_logger


class Transport(Protocol):
    """Minimal HTTP transport: send a request, get the raw body back."""

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> bytes:
        """Send a request and return the response body.

        Raises:
            aiohttp.ClientError: On connection, TLS or protocol failure.
            asyncio.TimeoutError: If the transport's timeout expires.
        """

    async def close(self) -> None:
        """Release network resources."""


class HTTPTransport:
    """aiohttp-backed transport.

    The body is returned for every HTTP status: the exchange reports API errors
    as JSON bodies on 4xx responses, and decoding those is the connector's job.
    No retries; the only timeout is ``timeout`` seconds per request.

    Args:
        timeout: Total timeout in seconds for one request.
    """

    def __init__(self, timeout: float = 15.0) -> None:
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        self._logger = get_logger("http")

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> bytes:
        async with self.session.request(method, url, headers=headers, data=body or None) as response:
            raw = await response.read()
            if response.status >= 400:
                self._logger.debug(
                    "http_error_status",
                    method=method,
                    url=url,
                    status=response.status,
                )
            return raw

    async def close(self) -> None:
        """Close session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HTTPTransport":
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()
