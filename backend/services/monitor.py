"""
LogMonitor Class - Wires tailing, aggregation and alerting together

This module owns the three cadences of a running monitor:
- tail: poll the log file and feed parsed records into the window
- metrics: drain the window and publish the snapshot
- alerts: evaluate the alert engine and publish active/resolved alerts
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional

from models.config import MonitorConfig
from models.data_models import Alert, AlertReport, MetricsSnapshot, Record
from services.aggregator import MetricsWindow
from services.alerts import AlertEngine
from services.parser import LogParser
from services.scheduler import PeriodicTask
from services.sink import Sink
from services.tailer import LogTailer
from utils.helpers import utcnow

logger = logging.getLogger(__name__)

JOIN_TIMEOUT_S = 5.0


class LogMonitor:
    """
    Runs the monitor pipeline against one log file.
    Responsibilities:
    - Open the log file before any cadence starts
    - Feed parsed lines into the metrics window, dropping unparseable ones
    - Drive the metrics and alert cadences against the sink
    - Stop ingestion on a tailing failure while the other cadences keep going
    """

    def __init__(
        self,
        config: MonitorConfig,
        sink: Sink,
        parser: Optional[Callable[[str], Optional[Record]]] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.sink = sink
        self.parser = parser or LogParser()
        self.clock = clock
        self.window = MetricsWindow(config.stats_interval, clock=clock)
        self.alerts = AlertEngine(
            self.window,
            threshold=config.alert_threshold,
            interval=config.alert_interval,
            clock=clock,
        )
        self.tailer: Optional[LogTailer] = None
        self.ingest_error: Optional[BaseException] = None
        self.lines_read = 0
        self.records_accepted = 0
        self.resolved_history: Deque[Alert] = deque(maxlen=config.alert_history)
        self._tasks: List[PeriodicTask] = []
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return any(t.is_running for t in self._tasks)

    def start(self) -> None:
        """Open the log file and start every cadence; raises SourceNotFound or SourceIOError"""
        with self._lock:
            if self._tasks:
                return
            self.tailer = LogTailer.open(self.config.log_file, from_start=self.config.tail_from_start)
            self._tasks = [
                PeriodicTask("tail", self.config.poll_interval, self.poll_once, on_error=self._on_tail_error),
                PeriodicTask("metrics", self.config.stats_interval, self.publish_metrics),
                PeriodicTask("alerts", self.config.alert_interval, self.publish_alerts),
            ]
            for task in self._tasks:
                task.start()
        logger.info(
            "Monitoring %s (stats every %ss, alerts every %ss above %.2f req/s)",
            self.config.log_file,
            self.config.stats_interval,
            self.config.alert_interval,
            self.config.alert_threshold,
        )

    def stop(self) -> None:
        """Signal every cadence, wait for them and close the log file"""
        with self._lock:
            tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.stop()
        for task in tasks:
            task.join(JOIN_TIMEOUT_S)
        if self.tailer is not None:
            self.tailer.close()
        if tasks:
            logger.info("Monitor stopped")

    def __enter__(self) -> "LogMonitor":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def poll_once(self) -> int:
        """One tailing tick: read new lines and ingest them"""
        if self.tailer is None:
            return 0
        return self.ingest(self.tailer.poll())

    def ingest(self, lines: Iterable[str]) -> int:
        """Parse lines and add the accepted records to the window"""
        accepted = 0
        for line in lines:
            self.lines_read += 1
            record = self.parser(line)
            if record is None:
                continue
            if self.window.add(record):
                accepted += 1
        self.records_accepted += accepted
        return accepted

    def publish_metrics(self) -> MetricsSnapshot:
        snapshot = self.window.drain(self.clock())
        self.sink.publish_metrics(snapshot)
        return snapshot

    def publish_alerts(self) -> AlertReport:
        self.alerts.evaluate()
        report = self.alerts.report()
        self.resolved_history.extend(report.expired)
        self.sink.publish_alerts(report.active, report.expired)
        return report

    def health(self) -> Dict[str, Any]:
        source = self.tailer.status() if self.tailer is not None else None
        return {
            "status": "ok" if self.ingest_error is None else "degraded",
            "log_file": {
                "path": source.path if source else self.config.log_file,
                "exists": source.exists if source else False,
                "size_bytes": source.size_bytes if source else 0,
                "offset": source.offset if source else 0,
                "closed": source.closed if source else True,
            },
            "tasks": {t.name: t.is_running for t in list(self._tasks)},
            "lines_read": self.lines_read,
            "records_accepted": self.records_accepted,
            "pending_records": self.window.pending,
            "ingest_error": str(self.ingest_error) if self.ingest_error else None,
        }

    def _on_tail_error(self, exc: BaseException) -> None:
        self.ingest_error = exc
        logger.error("Stopped ingesting %s: %s", self.config.log_file, exc, exc_info=exc)
