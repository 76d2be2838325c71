"""
MetricsWindow Class - Computes traffic metrics over a sliding interval

This module buffers parsed records as they arrive and periodically drains
them into an immutable MetricsSnapshot.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Optional

from models.data_models import MetricsSnapshot, Record
from utils.helpers import utcnow

logger = logging.getLogger(__name__)

TOP_SITES_LIMIT = 3


def compute_snapshot(
    records: Iterable[Record],
    interval: int,
    taken_at: Optional[datetime] = None,
    top: int = TOP_SITES_LIMIT,
) -> MetricsSnapshot:
    """Summarise records seen during one interval of `interval` seconds"""
    total = 0
    error_count = 0
    total_bytes = 0
    by_site: Dict[str, int] = {}

    for r in records:
        total += 1
        if r.is_error:
            error_count += 1
        total_bytes += r.size
        site = r.site
        by_site[site] = by_site.get(site, 0) + 1

    if not total:
        return MetricsSnapshot.empty(interval=interval, taken_at=taken_at)

    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(by_site.items(), key=lambda kv: kv[1], reverse=True)[:top]

    return MetricsSnapshot(
        requests_rate=total / interval,
        error_rate=error_count / total * 100.0,
        total_bytes=total_bytes,
        top_sites=MappingProxyType(dict(ranked)),
        requests=total,
        errors=error_count,
        interval=interval,
        taken_at=taken_at,
    )


class MetricsWindow:
    """
    Aggregates records into per-interval metrics.
    Responsibilities:
    - Accept records from the tailing thread without blocking it
    - Drain everything up to a given instant into a snapshot
    - Publish the latest snapshot for concurrent readers
    """

    def __init__(self, interval: int, clock: Callable[[], datetime] = utcnow):
        self.interval = interval
        self.clock = clock
        self._buffer: List[Record] = []
        self._lock = threading.Lock()
        self._snapshot = MetricsSnapshot.empty(interval=interval)
        self._last_drain: Optional[datetime] = None

    @property
    def snapshot(self) -> MetricsSnapshot:
        """Latest published snapshot; replaced wholesale on every drain"""
        return self._snapshot

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    def add(self, record: Record) -> bool:
        """Buffer a record unless it is already older than one interval"""
        if record.timestamp <= self.clock() - timedelta(seconds=self.interval):
            return False
        with self._lock:
            self._buffer.append(record)
        return True

    def drain(self, now: Optional[datetime] = None) -> MetricsSnapshot:
        """
        Remove and summarise every buffered record stamped after the previous
        drain and at or before now. Before the first drain the lower bound is
        one interval back from now.
        """
        if now is None:
            now = self.clock()
        with self._lock:
            pending, self._buffer = self._buffer, []
            oldest = self._last_drain
            if oldest is None:
                oldest = now - timedelta(seconds=self.interval)
            self._last_drain = now

        due: List[Record] = []
        later: List[Record] = []
        stale = 0
        for r in pending:
            if r.timestamp > now:
                later.append(r)
            elif r.timestamp <= oldest:
                stale += 1
            else:
                due.append(r)

        if later:
            with self._lock:
                self._buffer[:0] = later

        snapshot = compute_snapshot(due, self.interval, taken_at=now)
        self._snapshot = snapshot
        logger.debug(
            "Drained %d records (%d kept for later, %d stale): %.2f req/s",
            len(due), len(later), stale, snapshot.requests_rate,
        )
        return snapshot
