"""Time-derived tick values used for default ids and file name suffixes."""

from __future__ import annotations

import threading
import time

_lock = threading.Lock()
_last = 0


def next_tick() -> int:
    """Return a strictly increasing count of 100 ns intervals since the epoch.

    Two calls in the same process never return the same value, even when the
    wall clock has not advanced between them.
    """
    global _last
    with _lock:
        tick = time.time_ns() // 100
        if tick <= _last:
            tick = _last + 1
        _last = tick
        return tick
