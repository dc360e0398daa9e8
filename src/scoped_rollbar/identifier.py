"""
Report identifier generation for Scoped Rollbar.

Each report carries a UUID that Rollbar uses to deduplicate retried
submissions. The UUID is derived from the report contents and the current
time so that two different reports sent in the same millisecond still get
different identifiers, while the same inputs at the same instant always
produce the same one.

The derivation is NOT cryptographically secure. Identical reports sent from
different processes within the same millisecond collide; Rollbar then treats
them as one occurrence.
"""

from __future__ import annotations

import json
import random
import time
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from scoped_rollbar.levels import Level

FNV1_32_OFFSET_BASIS = 0x811C9DC5
FNV1_32_PRIME = 0x01000193

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def fnv1_32(data: bytes) -> int:
    """32-bit FNV-1 hash (multiply, then XOR)."""
    h = FNV1_32_OFFSET_BASIS
    for byte in data:
        h = (h * FNV1_32_PRIME) & 0xFFFFFFFF
        h ^= byte
    return h


def seed_material(
    level: Level,
    message: str,
    token: str,
    scope: str,
    environment: str,
    metadata: Mapping[str, Any] | None,
    timestamp_ms: int,
) -> bytes:
    """
    Serialize the identifier inputs in a stable order.

    Only top-level metadata keys are sorted; nested mappings keep their
    insertion order and may mix key types.
    """
    material = [
        level.value,
        message,
        token,
        scope,
        environment,
        dict(sorted((metadata or {}).items(), key=lambda item: str(item[0]))),
        timestamp_ms,
    ]
    return json.dumps(material, separators=(",", ":"), default=str).encode("utf-8")


def generate_identifier(
    level: Level,
    message: str,
    token: str,
    scope: str,
    environment: str,
    metadata: Mapping[str, Any] | None = None,
    timestamp_ms: int | None = None,
) -> str:
    """
    Derive a version 4 UUID string for a report.

    Args:
        level: Report severity.
        message: Report message text.
        token: Access token the report is sent with.
        scope: Origin label of the report.
        environment: Deployment environment name.
        metadata: Caller-supplied report metadata.
        timestamp_ms: Epoch milliseconds; read from the clock when omitted.

    Returns:
        Canonical UUID text, e.g. ``"1b4e28ba-2fa1-4d2e-883f-0016d3cca427"``.
    """
    if timestamp_ms is None:
        timestamp_ms = now_ms()

    digest = fnv1_32(
        seed_material(level, message, token, scope, environment, metadata, timestamp_ms)
    )
    rng = random.Random(digest ^ timestamp_ms)
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))
