"""Cooperative cancellation for long-running searches."""

from __future__ import annotations

import time
from typing import Callable, Optional

CancelCheck = Callable[[], bool]


class OptimizationCancelled(RuntimeError):
    """Raised when a caller asks a running search to stop."""

    def __init__(self, generation: int) -> None:
        super().__init__(f"Route optimization cancelled at generation {generation}")
        self.generation = generation


class Deadline:
    """Cancel check that trips once the given number of seconds has elapsed."""

    def __init__(self, seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if seconds <= 0:
            raise ValueError("seconds must be > 0")
        self._clock = clock
        self.expires_at = clock() + seconds

    def __call__(self) -> bool:
        return self._clock() >= self.expires_at


def check_cancelled(cancel: Optional[CancelCheck], generation: int) -> None:
    if cancel is not None and cancel():
        raise OptimizationCancelled(generation)
