"""
Retry controller for Scoped Rollbar.

Sends one report through a transport and retries it, with a fixed delay,
while Rollbar keeps answering HTTP 429. Every attempt posts the same body,
so the report UUID never changes between attempts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from scoped_rollbar.identifier import Clock, generate_identifier, now_ms
from scoped_rollbar.levels import Level
from scoped_rollbar.payload import DEFAULT_PLATFORM, build_payload, serialize_payload
from scoped_rollbar.transport import RateLimited, ReportError, Transport

logger = logging.getLogger(__name__)

# One retry per second for a minute covers Rollbar's rate-limit window.
DEFAULT_MAX_RETRY_ATTEMPTS = 60
DEFAULT_RETRY_DELAY = 1.0

Sleep = Callable[[float], Awaitable[Any]]


class RetryController:
    """
    Delivers reports, retrying rate-limited attempts.

    Args:
        transport: Transport used for every attempt.
        clock: Epoch-millisecond clock feeding the identifier.
        sleep: Coroutine function used to wait between attempts.
        retry_delay: Seconds to wait after a 429 before the next attempt.
    """

    def __init__(
        self,
        transport: Transport,
        clock: Clock = now_ms,
        sleep: Sleep = asyncio.sleep,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        self.transport = transport
        self.clock = clock
        self.sleep = sleep
        self.retry_delay = retry_delay

    async def send(
        self,
        token: str,
        environment: str,
        scope: str,
        level: Level,
        message: str,
        metadata: Mapping[str, Any] | None = None,
        *,
        budget: int = DEFAULT_MAX_RETRY_ATTEMPTS,
        code_version: str | None = None,
        platform: str = DEFAULT_PLATFORM,
        identifier: str | None = None,
    ) -> str:
        """
        Send a report and return its identifier once Rollbar accepts it.

        Args:
            token: Project access token.
            environment: Deployment environment name.
            scope: Origin label of the report.
            level: Report severity.
            message: Report message text.
            metadata: Extra data merged into the message body.
            budget: Number of retries allowed after rate-limited attempts.
            code_version: Deployed revision, if known.
            platform: Rollbar platform name.
            identifier: Reuse this identifier instead of generating one.

        Returns:
            The report UUID embedded in the delivered payload.

        Raises:
            RateLimited: Still rate limited after the budget ran out.
            HttpFailure: Any other non-2xx response.
            TransportError: No HTTP response was obtained.
        """
        if identifier is None:
            identifier = generate_identifier(
                level, message, token, scope, environment, metadata, self.clock()
            )

        body = serialize_payload(
            build_payload(
                token,
                environment,
                scope,
                level,
                message,
                identifier,
                metadata,
                code_version=code_version,
                platform=platform,
            )
        )

        remaining = max(budget, 0)
        attempt = 1

        while True:
            logger.debug(f"Sending {level.value} report {identifier} (attempt {attempt})")
            try:
                await self.transport.post(body, token)
                return identifier

            except RateLimited as e:
                e.identifier = identifier
                if remaining <= 0:
                    logger.warning(
                        f"Report {identifier} still rate limited after {attempt} attempts"
                    )
                    raise
                logger.warning(
                    f"Report {identifier} rate limited; retrying in {self.retry_delay}s "
                    f"({remaining} retries left)"
                )

            except ReportError as e:
                e.identifier = identifier
                raise

            await self.sleep(self.retry_delay)
            remaining -= 1
            attempt += 1
