"""Metrics port definition (interface and DTO)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

__all__ = ["PulseAttemptDto", "MetricsPort"]


@dataclass(slots=True, frozen=True)
class PulseAttemptDto:
    """Immutable snapshot of a single pulse.

    Attributes:
        scheduled_at_sec: Loop time when the pulse was due.
        fired_at_sec: Loop time when the pulse request left the process.
        is_failed: True if the pulse ended in a call to on_error.
        status_code: HTTP status code when a response arrived; None otherwise.
    """

    scheduled_at_sec: float
    fired_at_sec: float
    is_failed: bool = False
    status_code: int | None = None


class MetricsPort(Protocol):
    """Interface for recording pulse metrics.

    Implementations must be async-safe and non-blocking.
    The scheduler calls update() after each pulse; presentation layers call
    __str__() to render summaries.
    """

    def update(self, attempt: PulseAttemptDto, /) -> None:
        """Record a finished pulse.

        Args:
            attempt: The pulse to record.
        """
        ...

    def __str__(self) -> str:
        """Return concise textual summary for humans.

        Returns:
            Formatted metrics string.
        """
        ...
