import io
from datetime import datetime, timezone
from types import MappingProxyType

from models.data_models import Alert, AlertKind, MetricsSnapshot
from services.sink import ConsoleSink, format_top_sites

T0 = datetime(2018, 5, 9, 16, 0, 39, tzinfo=timezone.utc)


def test_metrics_report_layout():
    out = io.StringIO()
    snapshot = MetricsSnapshot(
        requests_rate=1.234,
        error_rate=25.0,
        total_bytes=2048,
        top_sites=MappingProxyType({"/a": 5, "/b": 3}),
        taken_at=T0,
    )

    ConsoleSink(stream=out).publish_metrics(snapshot)

    text = out.getvalue()
    assert "09/May/2018:16:00:39 +0000" in text
    assert "Top site hits: 1. /a (5 hits) | 2. /b (3 hits)" in text
    assert "Requests per second: 1.23" in text
    assert "Error rate: 25.00%" in text
    assert "Total traffic data: 2048 Bytes" in text


def test_empty_top_sites_prints_na():
    assert format_top_sites({}) == "N/A"


def test_alert_report_lines():
    out = io.StringIO()
    raised = Alert(kind=AlertKind.HIGH_REQUEST_RATE, created_at=T0)
    ongoing = raised.hit()
    solved = raised.resolve(T0)

    sink = ConsoleSink(stream=out)
    sink.publish_alerts([raised], [])
    sink.publish_alerts([ongoing], [solved])

    lines = out.getvalue().splitlines()
    assert lines[0].startswith("Alert raised: High traffic detected - hits = 1")
    assert lines[1] == (
        "The high traffic alert raised on 09/May/2018:16:00:39 +0000 "
        "was solved at 09/May/2018:16:00:39 +0000"
    )
    assert lines[2].startswith("Alert still ongoing: High traffic detected - hits = 2")
