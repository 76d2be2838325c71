"""Command-line interface for the access log monitor."""

import logging
import time
from typing import Optional

import typer
import uvicorn

from main import create_app
from models.config import DEFAULT_LOG_FILE, MonitorConfig
from services.errors import ConfigError, MonitorError
from services.monitor import LogMonitor
from services.sink import ConsoleSink

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="log-monitor",
    help="Tail an HTTP access log and report traffic metrics and alerts.",
    add_completion=False,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
IDLE_SLEEP_S = 0.5


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _build_config(
    log_file: str,
    stats_interval: int,
    alert_interval: int,
    alert_threshold: float,
    poll_interval: float,
    from_end: bool,
) -> MonitorConfig:
    try:
        return MonitorConfig(
            log_file=log_file,
            stats_interval=stats_interval,
            alert_interval=alert_interval,
            alert_threshold=alert_threshold,
            poll_interval=poll_interval,
            tail_from_start=not from_end,
        )
    except ConfigError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(2)


def _start(monitor: LogMonitor) -> None:
    try:
        monitor.start()
    except MonitorError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)


LogFileOption = typer.Option(DEFAULT_LOG_FILE, "--log-file", "-f", envvar="LOG_FILE", help="Access log to tail")
StatsIntervalOption = typer.Option(
    10, "--stats-interval", envvar="STATS_INTERVAL_S", help="Seconds between metric reports"
)
AlertIntervalOption = typer.Option(
    120, "--alert-interval", envvar="ALERT_INTERVAL_S", help="Seconds between alert evaluations"
)
AlertThresholdOption = typer.Option(
    10.0, "--alert-threshold", envvar="ALERT_THRESHOLD", help="Requests per second that raise an alert"
)
PollIntervalOption = typer.Option(
    0.5, "--poll-interval", envvar="POLL_INTERVAL_S", help="Seconds between reads of the log file"
)
FromEndOption = typer.Option(False, "--from-end", help="Skip the lines already in the file")
LogLevelOption = typer.Option("WARNING", "--log-level", envvar="MONITOR_LOG_LEVEL", help="Logging level")


@app.command()
def run(
    log_file: str = LogFileOption,
    stats_interval: int = StatsIntervalOption,
    alert_interval: int = AlertIntervalOption,
    alert_threshold: float = AlertThresholdOption,
    poll_interval: float = PollIntervalOption,
    from_end: bool = FromEndOption,
    log_level: str = LogLevelOption,
    duration: Optional[float] = typer.Option(None, "--duration", help="Stop after this many seconds"),
):
    """Monitor the log file and print reports to the console until interrupted."""
    _configure_logging(log_level)
    config = _build_config(log_file, stats_interval, alert_interval, alert_threshold, poll_interval, from_end)
    monitor = LogMonitor(config, ConsoleSink())
    _start(monitor)

    deadline = time.monotonic() + duration if duration is not None else None
    try:
        while deadline is None or time.monotonic() < deadline:
            time.sleep(IDLE_SLEEP_S)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        monitor.stop()


@app.command()
def serve(
    log_file: str = LogFileOption,
    stats_interval: int = StatsIntervalOption,
    alert_interval: int = AlertIntervalOption,
    alert_threshold: float = AlertThresholdOption,
    poll_interval: float = PollIntervalOption,
    from_end: bool = FromEndOption,
    log_level: str = LogLevelOption,
    host: str = typer.Option("127.0.0.1", "--host", envvar="MONITOR_HOST"),
    port: int = typer.Option(7000, "--port", envvar="MONITOR_PORT"),
):
    """Monitor the log file and also expose live metrics and alerts over HTTP."""
    _configure_logging(log_level)
    config = _build_config(log_file, stats_interval, alert_interval, alert_threshold, poll_interval, from_end)
    monitor = LogMonitor(config, ConsoleSink())
    _start(monitor)
    try:
        uvicorn.run(create_app(monitor), host=host, port=port, log_level=log_level.lower())
    finally:
        monitor.stop()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
