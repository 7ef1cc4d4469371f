"""Request rate limiting and measurement."""

from __future__ import annotations

import threading
import time
from collections import deque
from datetime import datetime
from typing import Any

_MICROS = 1_000_000


def _micros(moment: datetime | float) -> int:
    """Return a point in time as integer microseconds since the epoch."""
    if isinstance(moment, datetime):
        return round(moment.timestamp() * _MICROS)
    return round(moment * _MICROS)


class RateThrottle:
    """Paces outgoing requests and measures the achieved request rate.

    Completion times of the most recent requests are kept in a bounded
    window, five times the configured rate (or thread count when no rate
    is set), from which ``current_rate`` derives requests per second.
    """

    def __init__(self, conf: Any) -> None:
        self.config = conf
        self._lock = threading.Lock()
        self._tick_lock = threading.Lock()
        if conf.rate > 0:
            size = int(conf.rate * 5)
            self._interval = (_MICROS // conf.rate) / _MICROS
        else:
            size = conf.threads * 5
            # A million requests per second is the hard upper limit.
            self._interval = 1 / _MICROS
        self._counter: deque[int] = deque(maxlen=max(size, 0))
        self._next_tick = time.monotonic() + self._interval

    def current_rate(self) -> int:
        """Return the measured requests per second, or 0 if unknown."""
        with self._lock:
            samples = list(self._counter)
        if not samples:
            return 0
        elapsed_ms = (max(samples) - min(samples)) // 1000
        if elapsed_ms > 1:
            return 1000 * len(samples) // elapsed_ms
        return 0

    def change_rate(self, rate: int) -> None:
        """Set a new target rate and reset the measurements."""
        if rate <= 0:
            raise ValueError("rate must be a positive number of requests per second")
        with self._tick_lock:
            self._interval = (_MICROS // rate) / _MICROS
            self._next_tick = time.monotonic() + self._interval
        self.config.rate = rate
        with self._lock:
            self._counter = deque(maxlen=rate * 5)

    def tick(self, start: datetime | float, end: datetime | float) -> None:
        """Record a finished request; times are datetimes or epoch seconds."""
        with self._lock:
            self._counter.append(_micros(end))

    def wait(self) -> None:
        """Block until the next request may be sent."""
        with self._tick_lock:
            now = time.monotonic()
            if now < self._next_tick:
                time.sleep(self._next_tick - now)
                self._next_tick += self._interval
            else:
                self._next_tick = now + self._interval