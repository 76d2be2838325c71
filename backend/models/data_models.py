"""
Data Models (DTOs - Data Transfer Objects)

This module contains all dataclass definitions shared by the tailer,
the metrics window, the alert engine and the sinks.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from utils.helpers import site_of

# Inclusive on both ends: 505 is the last code counted as an error.
ERROR_STATUS_RANGE = (400, 505)


@dataclass(frozen=True)
class Record:
    """A single parsed access log line"""
    client: str
    identity: str
    user_id: str
    timestamp: datetime
    method: str
    path: str
    protocol: str
    status_code: int
    size: int

    @property
    def site(self) -> str:
        return site_of(self.path)

    @property
    def is_error(self) -> bool:
        lo, hi = ERROR_STATUS_RANGE
        return lo <= self.status_code <= hi


@dataclass(frozen=True)
class MetricsSnapshot:
    """Metrics summarised over one drained interval"""
    requests_rate: float = 0.0
    error_rate: float = 0.0
    total_bytes: int = 0
    top_sites: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    requests: int = 0
    errors: int = 0
    interval: int = 0
    taken_at: Optional[datetime] = None

    @classmethod
    def empty(cls, interval: int = 0, taken_at: Optional[datetime] = None) -> "MetricsSnapshot":
        return cls(interval=interval, taken_at=taken_at)

    def to_dict(self) -> dict:
        return {
            "requests_rate": self.requests_rate,
            "error_rate": self.error_rate,
            "total_bytes": self.total_bytes,
            "top_sites": dict(self.top_sites),
            "requests": self.requests,
            "errors": self.errors,
            "interval": self.interval,
            "taken_at": self.taken_at.isoformat() if self.taken_at else None,
        }


class AlertKind(Enum):
    """Alert kinds the engine knows how to raise"""
    HIGH_REQUEST_RATE = "high_request_rate"

    @property
    def message(self) -> str:
        return _ALERT_MESSAGES[self]


_ALERT_MESSAGES = {
    AlertKind.HIGH_REQUEST_RATE: "High traffic detected",
}


@dataclass(frozen=True)
class Alert:
    """
    One alert instance.

    Instances are immutable; the alert engine swaps in an updated copy on
    every transition so that views handed to sinks never change under them.
    """
    kind: AlertKind
    created_at: datetime
    hits: int = 1
    resolved_at: Optional[datetime] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def is_active(self) -> bool:
        return self.hits > 0

    @property
    def message(self) -> str:
        return self.kind.message

    def hit(self) -> "Alert":
        return replace(self, hits=self.hits + 1)

    def resolve(self, when: datetime) -> "Alert":
        return replace(self, hits=0, resolved_at=when)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "message": self.message,
            "hits": self.hits,
            "active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }


@dataclass(frozen=True)
class AlertReport:
    """Active and freshly resolved alerts read under one lock"""
    active: Tuple[Alert, ...] = ()
    expired: Tuple[Alert, ...] = ()


@dataclass(frozen=True)
class SourceStatus:
    """Tailer health"""
    path: str
    exists: bool
    size_bytes: int
    offset: int
    closed: bool
