"""
Configuration management for Scoped Rollbar.

Supports configuration via YAML files, environment variables, and programmatic access.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from scoped_rollbar.transport import Transport

DEFAULT_CONFIG_PATHS = [
    Path("/etc/scoped-rollbar/config.yaml"),
    Path.home() / ".config" / "scoped-rollbar" / "config.yaml",
    Path("rollbar-config.yaml"),
]

TRANSPORTS = ("httpx", "requests", "null")

# Nested keys whose field name is not "<section>_<key>"
SECTION_ALIASES = {
    ("logging", "level"): "log_level",
    ("retry", "attempts"): "max_retry_attempts",
}


@dataclass
class Config:
    """
    Configuration container for Scoped Rollbar.

    Priority (highest to lowest):
    1. Programmatic values passed to __init__
    2. Environment variables (prefixed with ROLLBAR_)
    3. Config file values
    4. Default values
    """

    # Reporting
    access_token: str | None = None
    environment: str = "development"
    code_version: str | None = None
    enabled: bool = True
    platform: str = "browser"

    # Delivery
    max_retry_attempts: int = 60
    retry_delay: float = 1.0
    timeout: float = 10.0
    transport: str = "httpx"

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """
        Create config from a dictionary.

        Nested sections are flattened: ``{"retry": {"delay": 2}}`` sets
        ``retry_delay``, ``{"reporting": {"environment": "prod"}}`` sets
        ``environment``.
        """
        known_fields = {f.name for f in fields(cls)}

        flat: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, dict):
                for subkey, subvalue in value.items():
                    prefixed = SECTION_ALIASES.get((key, subkey), f"{key}_{subkey}")
                    flat[prefixed if prefixed in known_fields else subkey] = subvalue
            else:
                flat[key] = value

        filtered = {k: _coerce(k, v) for k, v in flat.items() if k in known_fields}

        return cls(**filtered)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> Config:
        """
        Load configuration with full resolution order.

        Args:
            config_path: Explicit path to config file. If None, searches
                        default locations.

        Returns:
            Fully resolved Config instance.
        """
        base_config: dict[str, Any] = {}

        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    base_config = yaml.safe_load(f) or {}
        else:
            for path in DEFAULT_CONFIG_PATHS:
                if path.exists():
                    with open(path) as f:
                        base_config = yaml.safe_load(f) or {}
                    break

        config = cls.from_dict(base_config) if base_config else cls()

        config._apply_env_overrides()

        return config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        env_mappings = {
            "ROLLBAR_ACCESS_TOKEN": "access_token",
            "ROLLBAR_ENVIRONMENT": "environment",
            "ROLLBAR_CODE_VERSION": "code_version",
            "ROLLBAR_ENABLED": "enabled",
            "ROLLBAR_PLATFORM": "platform",
            "ROLLBAR_MAX_RETRY_ATTEMPTS": "max_retry_attempts",
            "ROLLBAR_RETRY_DELAY": "retry_delay",
            "ROLLBAR_TIMEOUT": "timeout",
            "ROLLBAR_TRANSPORT": "transport",
            "ROLLBAR_LOG_LEVEL": "log_level",
        }

        for env_var, attr in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                setattr(self, attr, _coerce(attr, value, source=env_var))

    def validate(self) -> None:
        """
        Check option values.

        Raises:
            ConfigError: If an option is out of range or unknown.
        """
        if self.max_retry_attempts < 0:
            raise ConfigError(f"max_retry_attempts must be >= 0, got {self.max_retry_attempts}")
        if self.retry_delay < 0:
            raise ConfigError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
        if self.transport not in TRANSPORTS:
            raise ConfigError(
                f"Unknown transport {self.transport!r}; expected one of {', '.join(TRANSPORTS)}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "reporting": {
                "access_token": "***" if self.access_token else None,
                "environment": self.environment,
                "code_version": self.code_version,
                "enabled": self.enabled,
                "platform": self.platform,
            },
            "delivery": {
                "max_retry_attempts": self.max_retry_attempts,
                "retry_delay": self.retry_delay,
                "timeout": self.timeout,
                "transport": self.transport,
            },
            "logging": {
                "level": self.log_level,
            },
        }

    def save(self, path: str | Path) -> None:
        """Save configuration to a YAML file. The access token is never written."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.to_dict()
        data["reporting"]["access_token"] = None

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _coerce(name: str, value: Any, source: str | None = None) -> Any:
    """
    Convert ``value`` to the type of the ``name`` field's default.

    Fields defaulting to None hold optional strings.

    Raises:
        ConfigError: If the value cannot be converted.
    """
    if value is None:
        return None

    default = next(f.default for f in fields(Config) if f.name == name)
    target = str if default is None else type(default)

    try:
        if target is bool:
            if isinstance(value, bool):
                return value
            return str(value).strip().lower() in ("true", "1", "yes")
        if target is int and isinstance(value, float) and not value.is_integer():
            raise ValueError(f"not an integer: {value}")
        return target(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {source or name}: {value!r} ({e})") from e


def transport_for(config: Config) -> Transport:
    """Build the transport selected by ``config``."""
    from scoped_rollbar.transport import HttpxTransport, NullTransport, RequestsTransport

    config.validate()

    if not config.enabled or config.transport == "null":
        return NullTransport()
    if config.transport == "requests":
        return RequestsTransport(timeout=config.timeout)
    return HttpxTransport(timeout=config.timeout)


class ConfigError(ValueError):
    """Raised when configuration values are invalid."""

    pass
