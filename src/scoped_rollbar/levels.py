"""Severity levels understood by the Rollbar item API."""

from __future__ import annotations

from enum import Enum
from functools import total_ordering


@total_ordering
class Level(Enum):
    """Report severity, most severe first. Values are the wire strings."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def parse(cls, name: str | Level) -> Level:
        """Look up a level by wire string or member name, case-insensitively."""
        if isinstance(name, Level):
            return name
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown level: {name!r}") from None

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.severity < other.severity


_SEVERITY = {
    Level.DEBUG: 10,
    Level.INFO: 20,
    Level.WARNING: 30,
    Level.ERROR: 40,
    Level.CRITICAL: 50,
}
