import threading
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from models.config import MonitorConfig
from services.errors import SourceIOError, SourceNotFound
from services.monitor import LogMonitor
from utils.helpers import format_clf_ts


class FakeSink:
    def __init__(self):
        self.metrics = []
        self.alerts = []
        self.published = threading.Event()

    def publish_metrics(self, snapshot):
        self.metrics.append(snapshot)
        self.published.set()

    def publish_alerts(self, active, expired):
        self.alerts.append((tuple(active), tuple(expired)))


def _line(ts: datetime, path="/pages/1", status=200, size=512) -> str:
    return f'127.0.0.1 - frank [{format_clf_ts(ts)}] "GET {path} HTTP/1.1" {status} {size}'


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    path = tmp_path / "access.log"
    path.write_text("")
    return path


def _config(log_path: Path, **overrides) -> MonitorConfig:
    values = dict(log_file=str(log_path), stats_interval=10, alert_interval=120, alert_threshold=1.0)
    values.update(overrides)
    return MonitorConfig(**values)


def test_ingest_drops_unparseable_lines(log_path, clock):
    monitor = LogMonitor(_config(log_path), FakeSink(), clock=clock)

    accepted = monitor.ingest([_line(clock.now), "garbage", "", _line(clock.now, path="/x")])

    assert accepted == 2
    assert monitor.lines_read == 4
    assert monitor.records_accepted == 2
    assert monitor.window.pending == 2


def test_publish_metrics_drains_into_sink(log_path, clock):
    sink = FakeSink()
    monitor = LogMonitor(_config(log_path), sink, clock=clock)
    monitor.ingest([_line(clock.now, status=500, size=100), _line(clock.now, size=300)])

    snapshot = monitor.publish_metrics()

    assert sink.metrics == [snapshot]
    assert snapshot.requests_rate == pytest.approx(0.2)
    assert snapshot.error_rate == pytest.approx(50.0)
    assert snapshot.total_bytes == 400
    assert dict(snapshot.top_sites) == {"/pages": 2}


def test_alert_cycle_through_the_monitor(log_path, clock):
    sink = FakeSink()
    monitor = LogMonitor(_config(log_path, stats_interval=1, alert_interval=2), sink, clock=clock)

    monitor.ingest([_line(clock.now) for _ in range(5)])
    monitor.publish_metrics()
    monitor.publish_alerts()
    active, expired = sink.alerts[-1]
    assert len(active) == 1 and active[0].hits == 1
    assert expired == ()

    clock.advance(2)
    monitor.publish_metrics()
    report = monitor.publish_alerts()
    active, expired = sink.alerts[-1]
    assert active == ()
    assert len(expired) == 1
    assert list(monitor.resolved_history) == list(report.expired)


def test_start_with_missing_file_fails_before_any_task(tmp_path):
    monitor = LogMonitor(_config(tmp_path / "missing.log"), FakeSink())
    with pytest.raises(SourceNotFound):
        monitor.start()
    assert not monitor.running


def test_running_monitor_tails_and_publishes(log_path):
    now = datetime.now(timezone.utc)
    log_path.write_text(_line(now) + "\n" + _line(now, path="/other/page") + "\n")
    sink = FakeSink()
    monitor = LogMonitor(_config(log_path, poll_interval=0.01), sink)

    with monitor:
        assert sink.published.wait(2)
        assert monitor.running
        deadline = datetime.now(timezone.utc) + timedelta(seconds=5)
        while monitor.records_accepted < 2 and datetime.now(timezone.utc) < deadline:
            time.sleep(0.01)

    assert monitor.records_accepted == 2
    assert not monitor.running
    assert monitor.tailer.closed


def test_tail_error_stops_ingestion_only(log_path):
    monitor = LogMonitor(_config(log_path, poll_interval=0.01), FakeSink())
    monitor.start()
    try:
        # a read on the closed handle fails the tail task
        monitor.tailer.close()
        deadline = time.monotonic() + 5
        while monitor.ingest_error is None and time.monotonic() < deadline:
            time.sleep(0.01)
        monitor._tasks[0].join(2)
        health = monitor.health()
    finally:
        monitor.stop()

    assert isinstance(monitor.ingest_error, SourceIOError)
    assert health["status"] == "degraded"
    assert health["tasks"] == {"tail": False, "metrics": True, "alerts": True}
    assert "closed" in health["ingest_error"]


def test_stop_is_idempotent(log_path):
    monitor = LogMonitor(_config(log_path), FakeSink())
    monitor.start()
    monitor.stop()
    monitor.stop()
    assert not monitor.running
