"""Cumulative probe statistics shared with the interrupt reporter."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Optional


@dataclass
class StatsSnapshot:
    sent: int
    received: int
    loss_percent: float
    rtt_min: Optional[float]
    rtt_avg: Optional[float]
    rtt_max: Optional[float]

    def __str__(self) -> str:
        lines = [
            "------ Ping Statistics ------",
            f"packets sent: {self.sent}, packets received: {self.received}, "
            f"{self.loss_percent:.0f}% loss",
        ]
        if (
            self.rtt_min is not None
            and self.rtt_avg is not None
            and self.rtt_max is not None
        ):
            lines.append(
                f"rtt min/avg/max = {self.rtt_min:.1f}/{self.rtt_avg:.1f}/{self.rtt_max:.1f} ms"
            )
        return "\n".join(lines) + "\n"

    def __rich__(self) -> str:
        return self.__str__()


class Statistics:
    """Counters mutated by the probe engine and read by reporters.

    Every update and every snapshot takes the same lock, so a reader never
    sees RTT bounds, total and received count from different probes.
    """

    def __init__(self, payload_size: int) -> None:
        self.payload_size = payload_size
        self.packets_sent = 0
        self.packets_received = 0
        self.bytes_lost = 0
        self.rtt_min_ms = math.inf
        self.rtt_max_ms = -math.inf
        self.rtt_total_ms = 0.0
        self._lock = threading.Lock()

    def record_sent(self) -> None:
        with self._lock:
            self.packets_sent += 1

    def record_reply(self, rtt_ms: float, lost_bytes: int = 0) -> None:
        with self._lock:
            self.packets_received += 1
            self.bytes_lost += lost_bytes
            self.rtt_total_ms += rtt_ms
            if rtt_ms < self.rtt_min_ms:
                self.rtt_min_ms = rtt_ms
            if rtt_ms > self.rtt_max_ms:
                self.rtt_max_ms = rtt_ms

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            sent = self.packets_sent
            received = self.packets_received
            bytes_lost = self.bytes_lost
            rtt_min = self.rtt_min_ms
            rtt_max = self.rtt_max_ms
            rtt_total = self.rtt_total_ms

        # no replies yet means there is nothing to assess: report total loss
        loss_percent = 100.0
        if received > 0:
            expected = sent * self.payload_size
            loss_percent = (bytes_lost / expected) * 100 if expected else 0.0

        if received == 0:
            return StatsSnapshot(
                sent=sent,
                received=0,
                loss_percent=loss_percent,
                rtt_min=None,
                rtt_avg=None,
                rtt_max=None,
            )
        return StatsSnapshot(
            sent=sent,
            received=received,
            loss_percent=loss_percent,
            rtt_min=rtt_min,
            rtt_avg=rtt_total / received,
            rtt_max=rtt_max,
        )
