from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from main import create_app
from models.config import MonitorConfig
from services.monitor import LogMonitor
from utils.helpers import format_clf_ts


class NullSink:
    def publish_metrics(self, snapshot):
        pass

    def publish_alerts(self, active, expired):
        pass


@pytest.fixture
def monitor(tmp_path: Path, clock) -> LogMonitor:
    path = tmp_path / "access.log"
    path.write_text("")
    config = MonitorConfig(log_file=str(path), stats_interval=1, alert_interval=5, alert_threshold=2.0)
    return LogMonitor(config, NullSink(), clock=clock)


@pytest.fixture
def client(monitor) -> TestClient:
    return TestClient(create_app(monitor))


def _feed(monitor, clock, n, path="/shop/cart"):
    ts = format_clf_ts(clock.now)
    monitor.ingest([f'1.2.3.4 - - [{ts}] "GET {path} HTTP/1.1" 200 10' for _ in range(n)])


def test_health_before_start(client):
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["log_file"]["closed"] is True
    assert body["tasks"] == {}


def test_metrics_reflect_last_drain(client, monitor, clock):
    _feed(monitor, clock, 4)
    monitor.publish_metrics()

    body = client.get("/api/metrics").json()

    assert body["metrics"]["requests_rate"] == 4.0
    assert body["metrics"]["top_sites"] == {"/shop": 4}
    assert body["metrics"]["total_bytes"] == 40
    assert body["config"]["alert_threshold"] == 2.0


def test_alerts_lists_active_and_resolved(client, monitor, clock):
    _feed(monitor, clock, 3)
    monitor.publish_metrics()
    monitor.publish_alerts()

    body = client.get("/api/alerts").json()
    assert len(body["active"]) == 1
    assert body["active"][0]["hits"] == 1
    assert body["resolved"] == []

    clock.advance(5)
    monitor.publish_metrics()
    monitor.publish_alerts()

    body = client.get("/api/alerts").json()
    assert body["active"] == []
    assert len(body["resolved"]) == 1
    assert body["resolved"][0]["active"] is False


def test_alerts_endpoint_does_not_consume_resolved_alerts(client, monitor, clock):
    _feed(monitor, clock, 3)
    monitor.publish_metrics()
    monitor.alerts.evaluate()
    clock.advance(5)
    monitor.publish_metrics()
    monitor.alerts.evaluate()

    client.get("/api/alerts")

    assert len(monitor.alerts.expired_alerts()) == 1
