"""In-memory sliding-window metrics for heartbeat pulses."""

from __future__ import annotations

import statistics
from collections import deque
from dataclasses import dataclass

from lanns_ticker.ports.metrics import MetricsPort, PulseAttemptDto

__all__ = ["PulseMetrics"]


@dataclass(slots=True, frozen=True)
class _Sample:
    """Internal record for one pulse."""

    delay_ms: float
    failed: bool
    status_code: int


class PulseMetrics(MetricsPort):
    """Lock-free pulse metrics for a single event loop.

    Tracks average schedule delay, failure rate, last status code and the
    total number of pulses seen.
    """

    def __init__(self, *, window_size: int = 50) -> None:
        """Initialize metrics collector.

        Args:
            window_size: Number of recent pulses to keep for statistics.
        """
        self._window: deque[_Sample] = deque(maxlen=window_size)
        self._total_seen: int = 0

    def update(self, attempt: PulseAttemptDto) -> None:
        """Record a finished pulse."""
        self._window.append(
            _Sample(
                delay_ms=(attempt.fired_at_sec - attempt.scheduled_at_sec) * 1_000.0,
                failed=attempt.is_failed,
                status_code=attempt.status_code or 0,
            )
        )
        self._total_seen += 1

    @property
    def failure_rate(self) -> float:
        """Share of failed pulses in the window, 0.0 when empty."""
        if not self._window:
            return 0.0
        return sum(1 for s in self._window if s.failed) / len(self._window)

    def __str__(self) -> str:
        if not self._window:
            return "Pulses: none yet"

        n_window = len(self._window)
        avg_delay = statistics.fmean(s.delay_ms for s in self._window)
        last = self._window[-1]

        return (
            f"delay={avg_delay:5.1f} ms | "
            f"status={last.status_code:3d} | "
            f"fail={self.failure_rate * 100:5.1f}% | "
            f"win={n_window}/{self._window.maxlen} | "
            f"total={self._total_seen}"
        )
