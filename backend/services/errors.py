"""
Error types raised by the monitor services.
"""

from typing import Optional


class MonitorError(Exception):
    """Base class for every error the monitor raises"""


class SourceNotFound(MonitorError):
    """The log file to tail does not exist"""

    def __init__(self, path: str):
        super().__init__(f"Log file not found: {path}")
        self.path = path


class SourceIOError(MonitorError):
    """Reading or seeking the tailed file failed"""

    def __init__(self, path: str, reason: Optional[str] = None):
        message = f"I/O error while tailing {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class ConfigError(MonitorError, ValueError):
    """A configuration value is out of range"""
