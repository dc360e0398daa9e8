"""
Scoped facade for Scoped Rollbar.

A ``Scope`` binds a token, environment and origin label once and exposes one
coroutine per severity level. This is the entry point applications use.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from scoped_rollbar.identifier import Clock, now_ms
from scoped_rollbar.levels import Level
from scoped_rollbar.retry import RetryController, Sleep

if TYPE_CHECKING:
    from scoped_rollbar.config import Config
    from scoped_rollbar.transport import Transport


class Scope:
    """Reports events to Rollbar under a fixed token, environment and scope."""

    def __init__(
        self,
        token: str,
        environment: str,
        scope: str,
        controller: RetryController,
        code_version: str | None = None,
        max_retry_attempts: int = 60,
        platform: str = "browser",
    ):
        self._token = token
        self._environment = environment
        self._scope = scope
        self._code_version = code_version
        self.controller = controller
        self.max_retry_attempts = max_retry_attempts
        self.platform = platform

    @property
    def token(self) -> str:
        return self._token

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def code_version(self) -> str | None:
        return self._code_version

    async def send(
        self,
        level: Level | str,
        message: str,
        metadata: Mapping[str, Any] | None = None,
        *,
        retries: int | None = None,
    ) -> str:
        """
        Send a report with an explicit level and retry budget.

        Args:
            level: Severity, as a ``Level`` or its wire string.
            message: Report message text.
            metadata: Extra data merged into the message body.
            retries: Retry budget for rate-limited attempts. Defaults to the
                scope's ``max_retry_attempts``.

        Returns:
            The report UUID.
        """
        return await self.controller.send(
            self._token,
            self._environment,
            self._scope,
            Level.parse(level),
            message,
            metadata,
            budget=self.max_retry_attempts if retries is None else retries,
            code_version=self._code_version,
            platform=self.platform,
        )

    async def critical(self, message: str, metadata: Mapping[str, Any] | None = None) -> str:
        return await self.send(Level.CRITICAL, message, metadata)

    async def error(self, message: str, metadata: Mapping[str, Any] | None = None) -> str:
        return await self.send(Level.ERROR, message, metadata)

    async def warning(self, message: str, metadata: Mapping[str, Any] | None = None) -> str:
        return await self.send(Level.WARNING, message, metadata)

    async def info(self, message: str, metadata: Mapping[str, Any] | None = None) -> str:
        return await self.send(Level.INFO, message, metadata)

    async def debug(self, message: str, metadata: Mapping[str, Any] | None = None) -> str:
        return await self.send(Level.DEBUG, message, metadata)

    async def exception(
        self,
        exc: BaseException,
        metadata: Mapping[str, Any] | None = None,
        level: Level | str = Level.ERROR,
    ) -> str:
        """Report an exception with its class name and traceback attached."""
        details = {
            "class": type(exc).__name__,
            "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }
        return await self.send(
            level,
            f"{type(exc).__name__}: {exc}",
            {**(metadata or {}), "exception": details},
        )

    async def aclose(self) -> None:
        await self.controller.transport.aclose()

    async def __aenter__(self) -> Scope:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"Scope(environment={self._environment!r}, scope={self._scope!r}, "
            f"code_version={self._code_version!r})"
        )


def create_scope(
    token: str,
    environment: str,
    scope: str,
    code_version: str | None = None,
    *,
    config: Config | None = None,
    transport: Transport | None = None,
    clock: Clock | None = None,
    sleep: Sleep | None = None,
) -> Scope:
    """
    Create a ``Scope`` bound to a token, environment and origin label.

    Args:
        token: Project access token.
        environment: Deployment environment, e.g. ``"production"``.
        scope: Origin of the reports, e.g. a module or page name.
        code_version: Deployed revision; overrides ``config.code_version``.
        config: Retry, transport and platform options. Defaults to ``Config()``.
        transport: Transport to use instead of the one named in ``config``.
        clock: Epoch-millisecond clock for identifier generation.
        sleep: Coroutine function used between retries.

    Returns:
        A ready-to-use ``Scope``.
    """
    from scoped_rollbar.config import Config, transport_for

    config = config or Config()

    controller_kwargs: dict[str, Any] = {
        "clock": clock or now_ms,
        "retry_delay": config.retry_delay,
    }
    if sleep is not None:
        controller_kwargs["sleep"] = sleep

    controller = RetryController(transport or transport_for(config), **controller_kwargs)

    return Scope(
        token,
        environment,
        scope,
        controller,
        code_version=code_version if code_version is not None else config.code_version,
        max_retry_attempts=config.max_retry_attempts,
        platform=config.platform,
    )
