# src/pack_optimizer/packing/budget.py

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from pack_optimizer.models import StopReason


@dataclass
class SearchBudget:
    """
    Caller limits for one packing call.

    - max_seconds: wall-clock limit, measured from start()
    - max_iterations: limit on (position, orientation) candidate evaluations
    - cancel_event: set by the caller to abandon the call

    All limits are checked between instance attempts, never mid-attempt.
    A budget object holds per-call counters; do not share one across calls.
    """

    max_seconds: Optional[float] = None
    max_iterations: Optional[int] = None
    cancel_event: Optional[threading.Event] = None
    clock: Callable[[], float] = time.monotonic

    iterations: int = field(default=0, init=False)
    _started_at: Optional[float] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_seconds is not None and self.max_seconds < 0:
            raise ValueError("max_seconds must be >= 0")
        if self.max_iterations is not None and self.max_iterations < 0:
            raise ValueError("max_iterations must be >= 0")

    def start(self) -> None:
        self.iterations = 0
        self._started_at = self.clock()

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self.clock() - self._started_at

    def charge(self, n: int = 1) -> None:
        self.iterations += n

    def stop_reason(self) -> Optional[StopReason]:
        """None while the search may continue."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            return StopReason.CANCELLED
        if self.max_iterations is not None and self.iterations >= self.max_iterations:
            return StopReason.BUDGET_EXHAUSTED
        if self.max_seconds is not None and self.elapsed() >= self.max_seconds:
            return StopReason.BUDGET_EXHAUSTED
        return None
