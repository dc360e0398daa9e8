"""
Pytest fixtures and configuration for Scoped Rollbar tests.

Provides scripted transports, a fixed clock, a recording sleep, and httpx
mock handlers shared across the test suite.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from scoped_rollbar.config import Config
from scoped_rollbar.transport import RateLimited, ReportError

FIXED_TIME_MS = 1_704_067_200_000


class ScriptedTransport:
    """Transport that replays a list of outcomes, one per attempt.

    Each outcome is either ``None`` (accepted) or a ``ReportError`` to raise.
    The last outcome repeats once the script runs out.
    """

    def __init__(self, outcomes: list[ReportError | None] | None = None):
        self.outcomes = list(outcomes or [None])
        self.bodies: list[bytes] = []
        self.tokens: list[str] = []
        self.closed = False

    @property
    def attempts(self) -> int:
        return len(self.bodies)

    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(body) for body in self.bodies]

    async def post(self, body: bytes, token: str) -> None:
        self.bodies.append(body)
        self.tokens.append(token)
        index = min(len(self.bodies), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if outcome is not None:
            raise outcome

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def scripted_transport():
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def rate_limited_then_ok():
    """Factory for a transport answering 429 ``times`` times, then accepting."""

    def factory(times: int) -> ScriptedTransport:
        return ScriptedTransport([RateLimited("Too Many Requests") for _ in range(times)] + [None])

    return factory


@pytest.fixture
def fixed_clock():
    """Clock that always returns the same millisecond."""
    return lambda: FIXED_TIME_MS


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def accepting_transport():
    return ScriptedTransport()


@pytest.fixture
def sample_metadata():
    return {"Payload": "123", "user": {"id": 42, "roles": ["admin"]}}


@pytest.fixture
def sample_config():
    """Sample configuration for testing."""
    return Config(
        access_token="test-token-12345",
        environment="test",
        code_version="abc123",
        max_retry_attempts=5,
        retry_delay=0.5,
        timeout=5.0,
    )


@pytest.fixture
def mock_rollbar_api():
    """httpx handler factory recording requests and answering with fixed statuses.

    Returns ``(transport, requests)``; statuses repeat their last entry.
    """

    def factory(*statuses: int):
        statuses = statuses or (200,)
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            status = statuses[min(len(seen), len(statuses)) - 1]
            if 200 <= status < 300:
                return httpx.Response(status, json={"err": 0, "result": {"id": None}})
            return httpx.Response(status, json={"err": 1, "message": "rejected"})

        return httpx.MockTransport(handler), seen

    return factory


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary config file."""
    config_file = tmp_path / "rollbar-config.yaml"
    config_file.write_text(
        """
reporting:
  access_token: "file-token"
  environment: staging
  code_version: deadbeef
delivery:
  max_retry_attempts: 10
  retry_delay: 2.5
  transport: requests
logging:
  level: DEBUG
"""
    )
    return config_file


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "cli: marks command line interface tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
