"""Fixed-interval probe scheduler."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from ._console import logger
from ._models import ProbeResult, ProbeStatus
from ._session import ProbeSession

DEFAULT_INTERVAL = 1.0


class Pinger:
    """Issue one probe at a time, waiting ``interval`` seconds in between.

    ``run`` returns once ``count`` probes were sent or ``stop`` was set. A
    probe already in flight is always allowed to finish.
    """

    def __init__(
        self,
        session: ProbeSession,
        *,
        ttl: Optional[int] = None,
        interval: float = DEFAULT_INTERVAL,
        count: Optional[int] = None,
        on_result: Optional[Callable[[ProbeResult], None]] = None,
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        if count is not None and count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        self.session = session
        self.ttl = ttl
        self.interval = interval
        self.count = count
        self.on_result = on_result
        self.stop = threading.Event()

    def run(self) -> int:
        """Run the probe loop, returning the number of probes issued."""
        issued = 0
        logger.debug(
            "Starting probe loop to %s (interval=%.2fs count=%s)",
            self.session.address,
            self.interval,
            self.count if self.count is not None else "inf",
        )
        while not self.stop.is_set():
            result = self.session.probe(self.ttl)
            issued += 1
            self._log_result(result)
            if self.on_result is not None:
                self.on_result(result)
            if self.count is not None and issued >= self.count:
                break
            if self.stop.wait(self.interval):
                break
        return issued

    @staticmethod
    def _log_result(result: ProbeResult) -> None:
        if result.ok and result.response is not None:
            logger.debug(
                "seq=%d reply from %s in %.2f ms",
                result.sequence,
                result.response.addr,
                result.response.rtt,
            )
        elif result.status is ProbeStatus.TIMEOUT:
            logger.debug("seq=%d timed out", result.sequence)
        elif result.status is not ProbeStatus.NON_ECHO_REPLY:
            logger.debug("seq=%d failed: %s", result.sequence, result.error)
