"""
LogTailer Class - Handles incremental reads of a growing log file

This module follows one file on disk, handing out the lines appended since
the previous poll and restarting from the top when the file is truncated or
replaced.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import BinaryIO, List, Optional

from models.data_models import SourceStatus
from services.errors import SourceIOError, SourceNotFound

logger = logging.getLogger(__name__)


class LogTailer:
    """
    Tails a single log file.
    Responsibilities:
    - Track the byte offset of the last complete line handed out
    - Detect truncation (file shorter than offset) and rename-style rotation
    - Leave unterminated trailing lines for the next poll
    """

    def __init__(self, path: str, handle: BinaryIO, offset: int = 0):
        self.path = path
        self._handle: Optional[BinaryIO] = handle
        self._inode = os.fstat(handle.fileno()).st_ino
        self._offset = offset
        self._skip_partial = False
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path: str, from_start: bool = True) -> "LogTailer":
        """Open the file at path; raises SourceNotFound if it does not exist"""
        handle = cls._open_handle(path)
        offset = 0
        mid_line = False
        if not from_start:
            try:
                offset = os.fstat(handle.fileno()).st_size
                if offset > 0:
                    handle.seek(offset - 1)
                    mid_line = handle.read(1) != b"\n"
            except OSError as exc:
                handle.close()
                raise SourceIOError(path, str(exc)) from exc
        logger.info("Tailing %s from offset %d", path, offset)
        tailer = cls(path, handle, offset=offset)
        # the end of the file may cut a line still being written
        tailer._skip_partial = mid_line
        return tailer

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def closed(self) -> bool:
        return self._handle is None

    def poll(self) -> List[str]:
        """Return the complete lines appended since the last poll, in file order"""
        with self._lock:
            if self._handle is None:
                raise SourceIOError(self.path, "tailer is closed")
            try:
                self._follow_rotation()
                length = os.fstat(self._handle.fileno()).st_size
                if length < self._offset:
                    logger.info(
                        "%s shrank from %d to %d bytes, reading from the start",
                        self.path, self._offset, length,
                    )
                    self._offset = 0
                    self._skip_partial = False
                if length == self._offset:
                    return []
                return self._read_lines()
            except (OSError, ValueError) as exc:
                raise SourceIOError(self.path, str(exc)) from exc

    def close(self) -> None:
        """Release the file handle. Safe to call more than once"""
        with self._lock:
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()
            logger.info("Stopped tailing %s at offset %d", self.path, self._offset)

    def status(self) -> SourceStatus:
        """Current file statistics for health reporting"""
        exists = os.path.exists(self.path)
        size_bytes = 0
        if exists:
            try:
                size_bytes = os.path.getsize(self.path)
            except OSError:
                exists = False
        return SourceStatus(
            path=os.path.abspath(self.path),
            exists=exists,
            size_bytes=size_bytes,
            offset=self._offset,
            closed=self.closed,
        )

    def __enter__(self) -> "LogTailer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def _open_handle(path: str) -> BinaryIO:
        try:
            return open(path, "rb")
        except FileNotFoundError as exc:
            raise SourceNotFound(path) from exc
        except OSError as exc:
            raise SourceIOError(path, str(exc)) from exc

    def _follow_rotation(self) -> None:
        """Reopen the path if it now points at a different file"""
        try:
            inode = os.stat(self.path).st_ino
        except FileNotFoundError:
            # moved away and not recreated yet; keep draining the old handle
            return
        if inode == self._inode:
            return
        logger.info("%s was replaced, reopening from the start", self.path)
        new_handle = open(self.path, "rb")
        self._handle.close()
        self._handle = new_handle
        self._inode = os.fstat(new_handle.fileno()).st_ino
        self._offset = 0
        self._skip_partial = False

    def _read_lines(self) -> List[str]:
        handle = self._handle
        handle.seek(self._offset)
        lines: List[str] = []
        committed = self._offset
        while True:
            raw = handle.readline()
            if not raw.endswith(b"\n"):
                # EOF or a line still being written
                break
            committed = handle.tell()
            if self._skip_partial:
                # tail of the line cut by a from-end start
                self._skip_partial = False
                continue
            lines.append(raw.rstrip(b"\r\n").decode("utf-8", errors="replace"))
        self._offset = committed
        logger.debug("Read %d lines from %s, offset now %d", len(lines), self.path, committed)
        return lines
