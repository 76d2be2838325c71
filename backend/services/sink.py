"""
Sinks - Destinations for published metrics and alerts

This module defines the Sink port and the console implementation used by
the command line.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Protocol, TextIO

import typer

from models.data_models import Alert, MetricsSnapshot
from utils.helpers import format_clf_ts, utcnow

SEPARATOR_WIDTH = 30


class Sink(Protocol):
    """Port the monitor publishes to once per cadence tick"""

    def publish_metrics(self, snapshot: MetricsSnapshot) -> None:
        """Receive the snapshot drained for the interval just ended."""

    def publish_alerts(self, active: Iterable[Alert], expired: Iterable[Alert]) -> None:
        """Receive the current active alerts and the ones resolved since the last call."""


class ConsoleSink:
    """Writes metrics and alerts as human readable text"""

    def __init__(self, stream: Optional[TextIO] = None, clock: Callable = utcnow):
        self.stream = stream
        self.clock = clock

    def publish_metrics(self, snapshot: MetricsSnapshot) -> None:
        sep = "-" * SEPARATOR_WIDTH
        when = snapshot.taken_at or self.clock()
        lines = [
            "_" * SEPARATOR_WIDTH,
            format_clf_ts(when),
            sep,
            f"Top site hits: {format_top_sites(snapshot.top_sites)}",
            f"Requests per second: {snapshot.requests_rate:.2f}",
            f"Error rate: {snapshot.error_rate:.2f}%",
            f"Total traffic data: {snapshot.total_bytes} Bytes",
            sep,
        ]
        self._echo("\n".join(lines))

    def publish_alerts(self, active: Iterable[Alert], expired: Iterable[Alert]) -> None:
        for alert in expired:
            solved = alert.resolved_at or self.clock()
            self._echo(
                f"The high traffic alert raised on {format_clf_ts(alert.created_at)} "
                f"was solved at {format_clf_ts(solved)}"
            )
        for alert in active:
            state = "Alert still ongoing" if alert.hits > 1 else "Alert raised"
            self._echo(
                f"{state}: {alert.message} - hits = {alert.hits}, "
                f"triggered at {format_clf_ts(alert.created_at)}"
            )

    def _echo(self, text: str) -> None:
        typer.echo(text, file=self.stream)


def format_top_sites(top_sites) -> str:
    if not top_sites:
        return "N/A"
    return " | ".join(
        f"{i}. {site} ({hits} hits)" for i, (site, hits) in enumerate(top_sites.items(), start=1)
    )
