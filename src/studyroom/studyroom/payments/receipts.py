from __future__ import annotations

import threading
import time

from ..core.constants import RECEIPT_PREFIX


class ReceiptNumberGenerator:
    """Issues ``RCP-<millis>`` numbers that strictly increase within the process.

    Two payments in the same millisecond get consecutive ids instead of a
    collision; the UNIQUE column still guards against other processes.
    """

    def __init__(self, clock_ms=None):
        self._clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            value = max(int(self._clock_ms()), self._last + 1)
            self._last = value
        return f"{RECEIPT_PREFIX}{value}"
