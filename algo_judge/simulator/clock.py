"""Simulated time source."""

from __future__ import annotations


class Clock:
    """Monotonic, non-negative simulated clock.

    Only the scenario engine advances it; wall-clock pacing is the
    presentation layer's concern.
    """

    __slots__ = ("now",)

    def __init__(self, start: float = 0) -> None:
        if start < 0:
            raise ValueError(f"start must be non-negative, got {start}")
        self.now: float = start

    def advance(self, delta: float) -> float:
        """Move the clock forward by *delta* and return the new time."""
        if delta < 0:
            raise ValueError(f"delta must be non-negative, got {delta}")
        self.now += delta
        return self.now

    def __repr__(self) -> str:
        return f"Clock(now={self.now})"
