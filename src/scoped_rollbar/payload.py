"""
Payload construction for the Rollbar item API.

Turns a report (level, message, metadata) plus the scope it was sent from
into the JSON document accepted by ``POST /api/1/item/``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from scoped_rollbar.levels import Level

ENDPOINT = "https://api.rollbar.com/api/1/item/"
NOTIFIER_NAME = "scoped-rollbar"
LANGUAGE = "python"
DEFAULT_PLATFORM = "browser"


def build_payload(
    token: str,
    environment: str,
    scope: str,
    level: Level,
    message: str,
    identifier: str,
    metadata: Mapping[str, Any] | None = None,
    code_version: str | None = None,
    platform: str = DEFAULT_PLATFORM,
) -> dict[str, Any]:
    """
    Build a Rollbar item payload.

    Metadata entries become siblings of the message ``body`` key. A metadata
    entry named ``body`` replaces the message text.

    Args:
        token: Project access token.
        environment: Deployment environment, e.g. ``"production"``.
        scope: Origin of the report; sent as the Rollbar ``context``.
        level: Report severity.
        message: Report message text.
        identifier: Report UUID used by Rollbar for deduplication.
        metadata: Extra structured data attached to the message.
        code_version: Deployed revision, if known.
        platform: Rollbar platform name.

    Returns:
        The payload as a JSON-serializable dictionary.
    """
    data: dict[str, Any] = {
        "environment": environment,
        "context": scope,
        "uuid": identifier,
    }

    if code_version:
        data["client"] = {LANGUAGE: {"code_version": code_version}}

    data.update(
        {
            "notifier": {"name": NOTIFIER_NAME, "version": _get_version()},
            "level": level.value,
            "endpoint": ENDPOINT,
            "platform": platform,
            "language": LANGUAGE,
            "body": {"message": {"body": message, **(metadata or {})}},
        }
    )

    return {"access_token": token, "data": data}


def serialize_payload(payload: Mapping[str, Any]) -> bytes:
    """Encode a payload as compact UTF-8 JSON."""
    return json.dumps(payload, separators=(",", ":"), default=str).encode("utf-8")


def _get_version() -> str:
    from scoped_rollbar import __version__

    return __version__
