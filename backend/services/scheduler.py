"""
PeriodicTask Class - Runs a callable on a fixed-delay cadence

The first run happens as soon as the task starts; each later run waits
`interval` seconds after the previous one finished.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    def __init__(
        self,
        name: str,
        interval: float,
        fn: Callable[[], None],
        on_error: Optional[Callable[[BaseException], None]] = None,
    ):
        self.name = name
        self.interval = interval
        self.fn = fn
        self.on_error = on_error
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        logger.debug("Task %s started, every %ss", self.name, self.interval)
        while not self._stop.is_set():
            try:
                self.fn()
            except Exception as exc:
                self._stop.set()
                if self.on_error is not None:
                    self.on_error(exc)
                else:
                    logger.exception("Task %s failed and will not run again", self.name)
                break
            if self._stop.wait(self.interval):
                break
        logger.debug("Task %s stopped", self.name)
