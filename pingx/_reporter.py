"""Interrupt-triggered final report.

Signal handlers only enqueue the signal number. A dedicated listener thread
blocks on that queue, takes a locked snapshot of the statistics and hands it
to the report callback exactly once.
"""

from __future__ import annotations

import queue
import signal
import threading
from typing import Callable, Iterable, Optional

from ._console import logger
from ._stats import Statistics, StatsSnapshot

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# queued by ``request_report`` when no signal is involved
REPORT_REQUEST = 0


class InterruptReporter:
    def __init__(
        self,
        statistics: Statistics,
        on_report: Callable[[StatsSnapshot], None],
        *,
        on_finished: Optional[Callable[[], None]] = None,
    ) -> None:
        self.statistics = statistics
        self.on_report = on_report
        self.on_finished = on_finished
        self.finished = threading.Event()
        self.snapshot: Optional[StatsSnapshot] = None
        self._queue: queue.Queue[int] = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._previous_handlers: dict[int, object] = {}

    def install(self, signals: Iterable[int] = DEFAULT_SIGNALS) -> None:
        """Route ``signals`` into the interrupt channel. Main thread only."""
        for signum in signals:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def restore(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _handle_signal(self, signum: int, frame) -> None:
        self._queue.put_nowait(signum)

    def request_report(self) -> None:
        self._queue.put_nowait(REPORT_REQUEST)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._listen, name="pingx-reporter", daemon=True
        )
        self._thread.start()

    def _listen(self) -> None:
        signum = self._queue.get()
        if signum != REPORT_REQUEST:
            logger.debug("Received signal %d, reporting", signum)
        try:
            self.snapshot = self.statistics.snapshot()
            self.on_report(self.snapshot)
        finally:
            self.finished.set()
            if self.on_finished is not None:
                self.on_finished()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self.finished.wait(timeout)
