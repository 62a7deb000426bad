"""Minimal helpers for opt-in debug/instrumentation hooks."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

DEBUG_QCMSTREAM = os.getenv("QCMSTREAM_DEBUG", "").lower() in {"1", "true", "yes", "on"}


def debug_enabled() -> bool:
    """Return True when lightweight instrumentation should run."""
    return DEBUG_QCMSTREAM


@contextmanager
def time_block(label: str, *, emitter: Callable[[str], None] | None = None) -> Iterator[None]:
    """Log how long the wrapped block took when debugging is enabled."""
    if not DEBUG_QCMSTREAM:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        message = f"{label} took {elapsed_ms:.3f} ms"
        if emitter is None:
            logger.debug(message)
        else:
            emitter(message)


class RateLogger:
    """Counts events and logs the average and recent rate every ``period_s``."""

    def __init__(self, label: str, *, period_s: float = 5.0) -> None:
        self.label = label
        self.period_s = float(period_s)
        self.total = 0
        self._window = 0
        self._start = time.perf_counter()
        self._last_log = self._start

    def tick(self) -> None:
        self.total += 1
        self._window += 1
        now = time.perf_counter()
        if now - self._last_log < self.period_s:
            return
        avg_rate = self.total / max(1e-9, now - self._start)
        window_rate = self._window / max(1e-9, now - self._last_log)
        logger.debug(
            "%s=%d avg≈%.1f Hz recent≈%.1f Hz", self.label, self.total, avg_rate, window_rate
        )
        self._last_log = now
        self._window = 0
