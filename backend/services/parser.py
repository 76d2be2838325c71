"""
LogParser Class - Handles parsing of access log lines

This module parses raw Common Log Format lines into structured Record objects.
"""

import re
from typing import Optional

from models.data_models import Record
from utils.helpers import parse_clf_ts, safe_int

# client identity userid [timestamp] "method path version" status size
CLF_PATTERN = re.compile(
    r"^(?P<client>\S+) (?P<identity>\S+) (?P<user_id>\S+) "
    r"\[(?P<timestamp>\d{2}/[A-Za-z]{3}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4})\] "
    r'"(?P<method>\S+) (?P<path>\S+) (?P<protocol>[^"\s]+)" '
    r"(?P<status>\d{3}) (?P<size>\d+|-)$"
)


class LogParser:
    """
    Parses raw access log lines into structured Record objects.
    Responsibilities:
    - Match the Common Log Format grammar
    - Convert timestamps, status codes and sizes
    Lines that do not match are reported as None, never as errors.
    """

    @staticmethod
    def parse(line: str) -> Optional[Record]:
        """Parse one line, return None if it is not a CLF line"""
        if not line:
            return None

        m = CLF_PATTERN.match(line.strip())
        if not m:
            return None

        ts = parse_clf_ts(m.group("timestamp"))
        if ts is None:
            return None

        status = safe_int(m.group("status"))
        if status is None:
            return None

        # "-" means no body was sent
        size_raw = m.group("size")
        size = 0 if size_raw == "-" else safe_int(size_raw)
        if size is None:
            return None

        return Record(
            client=m.group("client"),
            identity=m.group("identity"),
            user_id=m.group("user_id"),
            timestamp=ts,
            method=m.group("method"),
            path=m.group("path"),
            protocol=m.group("protocol"),
            status_code=status,
            size=size,
        )

    def __call__(self, line: str) -> Optional[Record]:
        return self.parse(line)
