"""
Unit tests for transports.

Tests headers, status handling and network failure mapping for the httpx,
requests and null transports.
"""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

import httpx
import pytest
import requests

from scoped_rollbar.payload import ENDPOINT
from scoped_rollbar.transport import (
    ACCESS_TOKEN_HEADER,
    HttpFailure,
    HttpxTransport,
    NullTransport,
    RateLimited,
    RequestsTransport,
    TransportError,
)

BODY = b'{"access_token":"abc","data":{}}'


class TestHttpxTransport:
    """Test HttpxTransport against an httpx mock transport."""

    @pytest.mark.asyncio
    async def test_posts_body_with_token_header(self, mock_rollbar_api):
        mock, seen = mock_rollbar_api(200)
        async with httpx.AsyncClient(transport=mock) as client:
            await HttpxTransport(client=client).post(BODY, "abc")

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == ENDPOINT
        assert request.headers[ACCESS_TOKEN_HEADER] == "abc"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["User-Agent"].startswith("scoped-rollbar/")
        assert request.content == BODY

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 201, 202, 204])
    async def test_any_2xx_is_success(self, mock_rollbar_api, status):
        mock, _ = mock_rollbar_api(status)
        async with httpx.AsyncClient(transport=mock) as client:
            await HttpxTransport(client=client).post(BODY, "abc")

    @pytest.mark.asyncio
    async def test_429_raises_rate_limited(self, mock_rollbar_api):
        mock, _ = mock_rollbar_api(429)
        async with httpx.AsyncClient(transport=mock) as client:
            with pytest.raises(RateLimited) as exc_info:
                await HttpxTransport(client=client).post(BODY, "abc")

        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 403, 413, 500, 503])
    async def test_other_statuses_raise_http_failure(self, mock_rollbar_api, status):
        mock, _ = mock_rollbar_api(status)
        async with httpx.AsyncClient(transport=mock) as client:
            with pytest.raises(HttpFailure) as exc_info:
                await HttpxTransport(client=client).post(BODY, "abc")

        assert not isinstance(exc_info.value, RateLimited)
        assert exc_info.value.status_code == status
        assert "rejected" in exc_info.value.response_text

    @pytest.mark.asyncio
    async def test_network_error_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("Name or service not known", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError) as exc_info:
                await HttpxTransport(client=client).post(BODY, "abc")

        assert "ConnectError" in exc_info.value.detail
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert not hasattr(exc_info.value, "status_code")

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError):
                await HttpxTransport(client=client).post(BODY, "abc")

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self, mock_rollbar_api):
        mock, _ = mock_rollbar_api(200)
        client = httpx.AsyncClient(transport=mock)
        transport = HttpxTransport(client=client)
        await transport.aclose()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_is_created_lazily_and_closed(self):
        transport = HttpxTransport(timeout=3.0)
        client = transport.client
        assert transport.client is client
        await transport.aclose()
        assert client.is_closed


class TestRequestsTransport(unittest.IsolatedAsyncioTestCase):
    """Test RequestsTransport with a mocked session."""

    def setUp(self):
        self.session = requests.Session()
        self.transport = RequestsTransport(session=self.session, timeout=4.0)

    def _response(self, status_code, text="{}"):
        response = MagicMock()
        response.status_code = status_code
        response.text = text
        return response

    async def test_posts_with_headers_and_timeout(self):
        with patch.object(self.session, "post", return_value=self._response(200)) as post:
            await self.transport.post(BODY, "abc")

        post.assert_called_once()
        args, kwargs = post.call_args
        assert args[0] == ENDPOINT
        assert kwargs["data"] == BODY
        assert kwargs["timeout"] == 4.0
        assert kwargs["headers"][ACCESS_TOKEN_HEADER] == "abc"

    async def test_429_raises_rate_limited(self):
        with patch.object(self.session, "post", return_value=self._response(429)):
            with self.assertRaises(RateLimited):
                await self.transport.post(BODY, "abc")

    async def test_500_raises_http_failure(self):
        with patch.object(self.session, "post", return_value=self._response(500, "boom")):
            with self.assertRaises(HttpFailure) as ctx:
                await self.transport.post(BODY, "abc")

        assert ctx.exception.status_code == 500
        assert ctx.exception.response_text == "boom"

    async def test_timeout_raises_transport_error(self):
        with patch.object(
            self.session, "post", side_effect=requests.exceptions.Timeout("slow")
        ):
            with self.assertRaises(TransportError) as ctx:
                await self.transport.post(BODY, "abc")

        assert "timed out" in ctx.exception.detail

    async def test_connection_error_raises_transport_error(self):
        with patch.object(
            self.session, "post", side_effect=requests.exceptions.ConnectionError("refused")
        ):
            with self.assertRaises(TransportError) as ctx:
                await self.transport.post(BODY, "abc")

        assert "Connection error" in ctx.exception.detail

    async def test_injected_session_is_not_closed(self):
        with patch.object(self.session, "close") as close:
            await self.transport.aclose()
        close.assert_not_called()


class TestNullTransport:
    """Test NullTransport."""

    @pytest.mark.asyncio
    async def test_accepts_and_records(self):
        transport = NullTransport()
        await transport.post(BODY, "abc")
        await transport.post(BODY, "abc")
        assert transport.sent == [BODY, BODY]
