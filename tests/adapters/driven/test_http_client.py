"""Tests for the aiohttp transport adapter."""

from unittest.mock import AsyncMock, Mock, patch

import aiohttp
import pytest
from aiohttp import ClientResponse, ClientTimeout

from fetchgate.adapters.driven.http.client import HttpClient
from fetchgate.ports.http import PendingRequest

__all__ = []


@pytest.mark.asyncio
async def test_http_client_context_manager() -> None:
    """HTTP client should initialize and close session."""
    client = HttpClient()
    assert client.session is None

    async with client as c:
        assert c.session is not None
        assert c is client

    assert client.session.closed


@pytest.mark.asyncio
async def test_send_forwards_pending_request() -> None:
    """send should map the pending request onto session.request."""
    client = HttpClient()
    client.session = AsyncMock()
    mock_response = AsyncMock(spec=ClientResponse)
    mock_response.status = 201
    client.session.request = AsyncMock(return_value=mock_response)

    req = PendingRequest(
        url="http://test/event",
        method="PUT",
        headers={"X-A": "1"},
        body='{"x": 1}',
        timeout=5,
        options={"ssl": False},
    )
    resp = await client.send(req)

    assert resp.status == 201
    client.session.request.assert_awaited_once_with(
        "PUT",
        "http://test/event",
        data='{"x": 1}',
        headers={"X-A": "1"},
        ssl=False,
        timeout=ClientTimeout(total=5),
    )


@pytest.mark.asyncio
async def test_send_keeps_explicit_timeout_option() -> None:
    """A timeout passed in the options should win over the request timeout."""
    client = HttpClient()
    client.session = AsyncMock()
    client.session.request = AsyncMock(return_value=AsyncMock())
    explicit = ClientTimeout(total=1)

    await client.send(PendingRequest(url="http://test", timeout=30, options={"timeout": explicit}))

    assert client.session.request.call_args.kwargs["timeout"] is explicit


@pytest.mark.asyncio
async def test_send_raises_without_session() -> None:
    """send should refuse to run outside the context manager."""
    client = HttpClient()

    with pytest.raises(RuntimeError, match="Session not initialized"):
        await client.send(PendingRequest(url="http://test"))


@pytest.mark.asyncio
async def test_send_retries_transient_errors() -> None:
    """Transient aiohttp errors should be retried up to the configured attempts."""
    client = HttpClient(retries=2)
    client.session = AsyncMock()
    ok = AsyncMock(spec=ClientResponse)
    ok.status = 200
    client.session.request = AsyncMock(side_effect=[aiohttp.ClientConnectionError("reset"), ok])

    with patch("fetchgate.adapters.driven.http.retry.asyncio.sleep", new=AsyncMock()):
        resp = await client.send(PendingRequest(url="http://test"))

    assert resp is ok
    assert client.session.request.await_count == 2


@pytest.mark.asyncio
async def test_send_does_not_retry_other_errors() -> None:
    """Non-transient errors should propagate on the first attempt."""
    client = HttpClient()
    client.session = Mock()
    client.session.request = AsyncMock(side_effect=ValueError("bad url"))

    with pytest.raises(ValueError):
        await client.send(PendingRequest(url="not a url"))

    assert client.session.request.await_count == 1
