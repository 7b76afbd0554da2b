"""Session configuration.

Loaded from the ``session:`` section of a YAML file, then overridden by
environment variables:

    session:
      exclude_own_service: true
      notification_mode: thread
      resolve_timeout_ms: 3000
      ip_version: v4
      log_events: true
"""

from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .domain.exceptions import ConfigurationError

NOTIFICATION_MODES = ("immediate", "thread")
IP_VERSIONS = ("v4", "v6", "all")

ENV_PREFIX = "DNSSD_"


def _parse_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("1", "true", "yes", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{field} must be a boolean, got {value!r}")


def _parse_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{field} must be an integer, got {value!r}") from e


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for a discovery session and its zeroconf provider.

    Attributes:
        exclude_own_service: Hide our own registered service from discovery results.
        notification_mode: "immediate" (inline) or "thread" (background delivery thread).
        resolve_timeout_ms: How long a resolution waits for mDNS answers.
        ip_version: "v4", "v6" or "all".
        log_events: Log every domain event through the logging handler.
    """

    exclude_own_service: bool = False
    notification_mode: str = "immediate"
    resolve_timeout_ms: int = 3000
    ip_version: str = "v4"
    log_events: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.notification_mode not in NOTIFICATION_MODES:
            raise ConfigurationError(f"notification_mode must be one of {', '.join(NOTIFICATION_MODES)}")
        if self.ip_version not in IP_VERSIONS:
            raise ConfigurationError(f"ip_version must be one of {', '.join(IP_VERSIONS)}")
        if self.resolve_timeout_ms <= 0:
            raise ConfigurationError("resolve_timeout_ms must be positive")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SessionConfig":
        """Create SessionConfig from a dictionary.

        Args:
            data: Configuration dictionary. If None, returns default config.

        Raises:
            ConfigurationError: If values are invalid or keys are unknown.
        """
        if not data:
            return cls()

        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"unknown session settings: {', '.join(sorted(unknown))}")

        return cls(
            exclude_own_service=_parse_bool(data.get("exclude_own_service", False), "exclude_own_service"),
            notification_mode=str(data.get("notification_mode", "immediate")),
            resolve_timeout_ms=_parse_int(data.get("resolve_timeout_ms", 3000), "resolve_timeout_ms"),
            ip_version=str(data.get("ip_version", "v4")),
            log_events=_parse_bool(data.get("log_events", True), "log_events"),
        )

    def with_env(self, env: Mapping[str, str]) -> "SessionConfig":
        """Return a copy with ``DNSSD_*`` environment overrides applied."""
        overrides: dict[str, Any] = {}
        if f"{ENV_PREFIX}EXCLUDE_OWN_SERVICE" in env:
            overrides["exclude_own_service"] = _parse_bool(
                env[f"{ENV_PREFIX}EXCLUDE_OWN_SERVICE"], "DNSSD_EXCLUDE_OWN_SERVICE"
            )
        if f"{ENV_PREFIX}NOTIFICATION_MODE" in env:
            overrides["notification_mode"] = env[f"{ENV_PREFIX}NOTIFICATION_MODE"].strip().lower()
        if f"{ENV_PREFIX}RESOLVE_TIMEOUT_MS" in env:
            overrides["resolve_timeout_ms"] = _parse_int(
                env[f"{ENV_PREFIX}RESOLVE_TIMEOUT_MS"], "DNSSD_RESOLVE_TIMEOUT_MS"
            )
        if f"{ENV_PREFIX}IP_VERSION" in env:
            overrides["ip_version"] = env[f"{ENV_PREFIX}IP_VERSION"].strip().lower()
        return replace(self, **overrides) if overrides else self

    def to_dict(self) -> dict[str, Any]:
        return {
            "exclude_own_service": self.exclude_own_service,
            "notification_mode": self.notification_mode,
            "resolve_timeout_ms": self.resolve_timeout_ms,
            "ip_version": self.ip_version,
            "log_events": self.log_events,
        }


def load_config(path: Optional[str | Path] = None, env: Optional[Mapping[str, str]] = None) -> SessionConfig:
    """Load configuration from an optional YAML file plus the environment.

    Args:
        path: YAML file with a ``session:`` section. Missing path means defaults.
        env: Environment mapping (defaults to os.environ).

    Raises:
        ConfigurationError: If the file cannot be read or contains invalid values.
    """
    env = os.environ if env is None else env
    data: Mapping[str, Any] = {}

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        try:
            with open(config_path, encoding="utf-8") as f:
                document = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(document, dict):
            raise ConfigurationError(f"{config_path}: top level must be a mapping")
        data = document.get("session") or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path}: 'session' must be a mapping")

    return SessionConfig.from_dict(data).with_env(env)
