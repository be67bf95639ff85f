"""Unit tests for the aiohttp transport."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from gembot.connectors.http import HTTPTransport


def _mock_session(status: int = 200, body: bytes = b"{}") -> MagicMock:
    """Create a mock ClientSession whose request() yields one response."""
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.read = AsyncMock(return_value=body)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    mock_session.closed = False
    mock_session.request = MagicMock(return_value=mock_response)
    return mock_session


class TestSessionManagement:
    """Tests for lazy session handling."""

    def test_init(self) -> None:
        transport = HTTPTransport(timeout=10.0)
        assert transport.timeout.total == 10.0
        assert transport._session is None

    @pytest.mark.asyncio
    async def test_session_property_creates_session(self) -> None:
        transport = HTTPTransport()
        session = transport.session
        assert isinstance(session, aiohttp.ClientSession)
        assert transport.session is session
        await transport.close()

    @pytest.mark.asyncio
    async def test_session_recreated_after_close(self) -> None:
        transport = HTTPTransport()
        first = transport.session
        await first.close()

        second = transport.session
        assert first is not second
        assert not second.closed
        await transport.close()

    @pytest.mark.asyncio
    async def test_close_idempotent(self) -> None:
        transport = HTTPTransport()
        await transport.close()
        await transport.close()

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        async with HTTPTransport() as transport:
            session = transport.session
        assert session.closed
        assert transport._session is None


class TestRequest:
    """Tests for request dispatch."""

    @pytest.mark.asyncio
    async def test_get_returns_body(self) -> None:
        transport = HTTPTransport()
        transport._session = _mock_session(body=b'["btcusd"]')

        raw = await transport.request("GET", "https://api.gemini.com/v1/symbols")

        assert raw == b'["btcusd"]'
        transport._session.request.assert_called_once_with(
            "GET", "https://api.gemini.com/v1/symbols", headers=None, data=None
        )

    @pytest.mark.asyncio
    async def test_empty_body_sends_no_data(self) -> None:
        transport = HTTPTransport()
        transport._session = _mock_session()
        headers = {"X-GEMINI-APIKEY": "key"}

        await transport.request("POST", "https://api.gemini.com/v1/balances", headers=headers, body=b"")

        kwargs = transport._session.request.call_args.kwargs
        assert kwargs["headers"] == headers
        assert kwargs["data"] is None

    @pytest.mark.asyncio
    async def test_error_status_returns_body(self) -> None:
        body = b'{"result":"error","reason":"InvalidSignature"}'
        transport = HTTPTransport()
        transport._session = _mock_session(status=400, body=body)

        assert await transport.request("POST", "https://api.gemini.com/v1/balances") == body

    @pytest.mark.asyncio
    async def test_client_error_propagates(self) -> None:
        transport = HTTPTransport()
        session = _mock_session()
        session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        transport._session = session

        with pytest.raises(aiohttp.ClientConnectionError):
            await transport.request("GET", "https://api.gemini.com/v1/symbols")
