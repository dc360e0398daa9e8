"""
Transports for Scoped Rollbar.

A transport delivers one serialized payload to the Rollbar item endpoint and
turns anything other than a 2xx response into a typed failure. Status codes
are not interpreted here beyond that; retry decisions belong to the retry
controller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import httpx
import requests

from scoped_rollbar.payload import ENDPOINT

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Rollbar-Access-Token"
DEFAULT_TIMEOUT = 10.0


class Transport(Protocol):
    """Delivers serialized payloads to Rollbar."""

    async def post(self, body: bytes, token: str) -> None:
        """Send ``body``; raise a ``ReportError`` subclass unless accepted."""
        ...

    async def aclose(self) -> None:
        ...


class HttpxTransport:
    """
    Non-blocking transport built on ``httpx.AsyncClient``.

    The client is created lazily unless one is injected, and is only closed
    by ``aclose`` when this transport created it.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        endpoint: str = ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def post(self, body: bytes, token: str) -> None:
        try:
            response = await self.client.post(
                self.endpoint,
                content=body,
                headers=_headers(token),
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        _raise_for_status(response.status_code, response.text)
        logger.debug(f"Rollbar accepted report (HTTP {response.status_code})")

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class RequestsTransport:
    """
    Transport over a blocking ``requests.Session``.

    Each post runs on a worker thread so the event loop is not blocked. Use
    it when a session is already configured with proxies or client
    certificates.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        endpoint: str = ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

    def _post(self, body: bytes, token: str) -> requests.Response:
        return self.session.post(
            self.endpoint,
            data=body,
            headers=_headers(token),
            timeout=self.timeout,
        )

    async def post(self, body: bytes, token: str) -> None:
        try:
            response = await asyncio.to_thread(self._post, body, token)
        except requests.exceptions.Timeout as e:
            raise TransportError("Request timed out") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request error: {e}") from e

        _raise_for_status(response.status_code, response.text)
        logger.debug(f"Rollbar accepted report (HTTP {response.status_code})")

    async def aclose(self) -> None:
        if self._owns_session:
            self.session.close()


class NullTransport:
    """Accepts every report without sending it anywhere."""

    def __init__(self):
        self.sent: list[bytes] = []

    async def post(self, body: bytes, token: str) -> None:
        self.sent.append(body)

    async def aclose(self) -> None:
        pass


def _headers(token: str) -> dict[str, str]:
    return {
        ACCESS_TOKEN_HEADER: token,
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": f"scoped-rollbar/{_get_version()}",
    }


def _raise_for_status(status_code: int, text: str) -> None:
    if 200 <= status_code < 300:
        return
    if status_code == RateLimited.STATUS_CODE:
        raise RateLimited(text[:200])
    raise HttpFailure(status_code, text[:200])


def _get_version() -> str:
    from scoped_rollbar import __version__

    return __version__


class ReportError(Exception):
    """Base class for failures to deliver a report."""

    identifier: str | None = None


class TransportError(ReportError):
    """Raised when no HTTP response was obtained."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class HttpFailure(ReportError):
    """Raised when Rollbar answers with a non-2xx status."""

    def __init__(self, status_code: int, response_text: str = ""):
        super().__init__(f"HTTP {status_code}: {response_text}")
        self.status_code = status_code
        self.response_text = response_text


class RateLimited(HttpFailure):
    """Raised when Rollbar rejects a report with HTTP 429."""

    STATUS_CODE = 429

    def __init__(self, response_text: str = ""):
        super().__init__(self.STATUS_CODE, response_text)
