from datetime import datetime, timedelta, timezone

import pytest

from models.data_models import Record


class ManualClock:
    """Clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


def make_record(path="/report", status=200, size=100, timestamp=None, **kw) -> Record:
    return Record(
        client=kw.get("client", "127.0.0.1"),
        identity=kw.get("identity", "-"),
        user_id=kw.get("user_id", "james"),
        timestamp=timestamp or datetime.now(timezone.utc),
        method=kw.get("method", "GET"),
        path=path,
        protocol=kw.get("protocol", "HTTP/1.0"),
        status_code=status,
        size=size,
    )
