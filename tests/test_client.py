"""
Tests for the gateway HTTP client.
httpx.AsyncClient is patched; nothing goes over the network.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from genaichat.client import GatewayClient, GatewayError


def _mock_http(mock_client_cls, resp=None, exc=None):
    mock_client = AsyncMock()
    if exc is not None:
        mock_client.post.side_effect = exc
        mock_client.get.side_effect = exc
    else:
        mock_client.post.return_value = resp
        mock_client.get.return_value = resp
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


def _resp(status, json_data=None, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = json_data
    resp.text = text
    return resp


@pytest.mark.asyncio
async def test_complete_returns_reply():
    c = GatewayClient("http://gw/api/genai")
    with patch("genaichat.client.httpx.AsyncClient") as cls:
        http = _mock_http(cls, _resp(200, {"reply": "hi"}))
        reply = await c.complete([{"role": "user", "content": "hello"}])

    assert reply == "hi"
    http.post.assert_awaited_once_with(
        "http://gw/api/genai",
        json={"messages": [{"role": "user", "content": "hello"}]},
    )


@pytest.mark.asyncio
async def test_complete_missing_reply_is_none():
    c = GatewayClient("http://gw/api/genai")
    with patch("genaichat.client.httpx.AsyncClient") as cls:
        _mock_http(cls, _resp(200, {}))
        assert await c.complete([]) is None


@pytest.mark.asyncio
async def test_complete_non_2xx_raises_with_status_and_body():
    c = GatewayClient("http://gw/api/genai")
    with patch("genaichat.client.httpx.AsyncClient") as cls:
        _mock_http(cls, _resp(500, text='{"error":"quota exceeded"}'))
        with pytest.raises(GatewayError) as exc_info:
            await c.complete([])

    err = exc_info.value
    assert err.status_code == 500
    assert str(err) == 'Server error: 500 - {"error":"quota exceeded"}'


@pytest.mark.asyncio
async def test_complete_transport_error_propagates():
    c = GatewayClient("http://gw/api/genai", timeout=1)
    with patch("genaichat.client.httpx.AsyncClient") as cls:
        _mock_http(cls, exc=httpx.ConnectTimeout("timed out"))
        with pytest.raises(httpx.TimeoutException):
            await c.complete([])


@pytest.mark.asyncio
async def test_health_uses_sibling_path():
    c = GatewayClient("http://gw:8888/api/genai")
    resp = _resp(200, {"status": "ok"})
    resp.raise_for_status = MagicMock()
    with patch("genaichat.client.httpx.AsyncClient") as cls:
        http = _mock_http(cls, resp)
        assert await c.health() == {"status": "ok"}

    url = http.get.call_args.args[0]
    assert str(url) == "http://gw:8888/health"
