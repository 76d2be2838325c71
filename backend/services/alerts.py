"""
AlertEngine Class - Raises and resolves threshold alerts

This module evaluates the live request rate on a fixed cadence and keeps
the set of alerts that sinks report on.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Protocol, Tuple

from models.data_models import Alert, AlertKind, AlertReport, MetricsSnapshot
from utils.helpers import utcnow

logger = logging.getLogger(__name__)


class MetricsSource(Protocol):
    """Anything exposing the latest metrics snapshot"""

    @property
    def snapshot(self) -> MetricsSnapshot:
        """Return the most recently published snapshot."""


class AlertEngine:
    """
    Maintains the live alert set.

    An alert is created the first time the request rate exceeds the
    threshold, gains a hit on every further breach, and is resolved once the
    rate is back under the threshold and the alert is at least one interval
    old. Resolved alerts stay in the set until read once through
    expired_alerts() or report().

    Every read and every evaluation holds the same lock.
    """

    def __init__(
        self,
        metrics: MetricsSource,
        threshold: float,
        interval: int,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.metrics = metrics
        self.threshold = threshold
        self.interval = interval
        self.clock = clock
        self._alerts: Dict[str, Alert] = {}
        self._lock = threading.RLock()

    def evaluate(self, now: Optional[datetime] = None) -> None:
        """Run one evaluation pass against the current request rate"""
        with self._lock:
            if now is None:
                now = self.clock()
            rate = self.metrics.snapshot.requests_rate
            if rate > self.threshold:
                self._record_breach(AlertKind.HIGH_REQUEST_RATE, now, rate)
            else:
                self._resolve_aged(now, rate)

    def active_alerts(self) -> Tuple[Alert, ...]:
        with self._lock:
            return tuple(a for a in self._alerts.values() if a.is_active)

    def expired_alerts(self) -> Tuple[Alert, ...]:
        """Return resolved alerts and forget them"""
        with self._lock:
            expired = tuple(a for a in self._alerts.values() if not a.is_active)
            for alert in expired:
                del self._alerts[alert.id]
            return expired

    def report(self) -> AlertReport:
        """Active alerts plus the resolved ones, consumed in the same step"""
        with self._lock:
            expired = self.expired_alerts()
            return AlertReport(active=self.active_alerts(), expired=expired)

    def _find_active(self, kind: AlertKind) -> Optional[Alert]:
        for alert in self._alerts.values():
            if alert.kind is kind and alert.is_active:
                return alert
        return None

    def _record_breach(self, kind: AlertKind, now: datetime, rate: float) -> None:
        current = self._find_active(kind)
        if current is None:
            alert = Alert(kind=kind, created_at=now)
            self._alerts[alert.id] = alert
            logger.warning(
                "%s: %.2f req/s over threshold %.2f (alert %s)",
                kind.message, rate, self.threshold, alert.id,
            )
        else:
            self._alerts[current.id] = current.hit()

    def _resolve_aged(self, now: datetime, rate: float) -> None:
        cutoff = now - timedelta(seconds=self.interval)
        for alert in list(self._alerts.values()):
            if alert.is_active and alert.created_at <= cutoff:
                self._alerts[alert.id] = alert.resolve(now)
                logger.info(
                    "Resolved alert %s: %.2f req/s back under %.2f",
                    alert.id, rate, self.threshold,
                )
