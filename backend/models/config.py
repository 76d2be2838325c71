"""
Monitor configuration

A single immutable value built once at startup and handed to every
component that needs it.
"""

from __future__ import annotations

from dataclasses import dataclass

from services.errors import ConfigError

DEFAULT_LOG_FILE = "/tmp/access.log"


@dataclass(frozen=True)
class MonitorConfig:
    """Runtime settings for the log monitor"""
    log_file: str = DEFAULT_LOG_FILE
    stats_interval: int = 10
    alert_interval: int = 120
    alert_threshold: float = 10.0
    poll_interval: float = 0.5
    tail_from_start: bool = True
    alert_history: int = 50

    def __post_init__(self) -> None:
        if not self.log_file:
            raise ConfigError("log_file must not be empty")
        for name in ("stats_interval", "alert_interval"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.alert_threshold <= 0:
            raise ConfigError(f"alert_threshold must be positive, got {self.alert_threshold!r}")
        if self.poll_interval <= 0:
            raise ConfigError(f"poll_interval must be positive, got {self.poll_interval!r}")
        if self.alert_history < 0:
            raise ConfigError(f"alert_history must not be negative, got {self.alert_history!r}")
