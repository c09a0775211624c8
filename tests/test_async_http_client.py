"""
Tests for AsyncSecureHTTPClient
"""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from build_status.async_http_client import AsyncSecureHTTPClient


class TestAsyncSecureHTTPClient:
    """Tests for the httpx wrapper"""

    def test_timeout_is_wrapped(self):
        client = AsyncSecureHTTPClient(timeout=5)

        assert client.timeout == httpx.Timeout(5)
        assert client.client is None

    @pytest.mark.asyncio
    async def test_get_outside_context_raises(self):
        with pytest.raises(RuntimeError, match="context manager"):
            await AsyncSecureHTTPClient().get("https://example.com")

    @pytest.mark.asyncio
    async def test_context_creates_verified_client_and_closes_it(self):
        mock_async_client = Mock()
        mock_async_client.aclose = AsyncMock()

        with patch("build_status.async_http_client.httpx.AsyncClient", return_value=mock_async_client) as mock_class:
            async with AsyncSecureHTTPClient(timeout=10, http2=False) as client:
                assert client.client is mock_async_client

        kwargs = mock_class.call_args[1]
        assert kwargs["verify"] is True
        assert kwargs["http2"] is False
        assert kwargs["follow_redirects"] is True
        mock_async_client.aclose.assert_awaited_once()
        assert client.client is None

    @pytest.mark.asyncio
    async def test_client_closed_when_body_raises(self):
        mock_async_client = Mock()
        mock_async_client.aclose = AsyncMock()

        with patch("build_status.async_http_client.httpx.AsyncClient", return_value=mock_async_client):
            with pytest.raises(ValueError):
                async with AsyncSecureHTTPClient():
                    raise ValueError("boom")

        mock_async_client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_applies_default_timeout(self):
        mock_async_client = Mock()
        mock_async_client.aclose = AsyncMock()
        mock_async_client.get = AsyncMock(return_value="response")

        with patch("build_status.async_http_client.httpx.AsyncClient", return_value=mock_async_client):
            async with AsyncSecureHTTPClient(timeout=7) as client:
                response = await client.get("https://example.com", headers={"Accept": "text/plain"})

        assert response == "response"
        call_kwargs = mock_async_client.get.call_args[1]
        assert call_kwargs["timeout"] == httpx.Timeout(7)
        assert call_kwargs["headers"] == {"Accept": "text/plain"}
