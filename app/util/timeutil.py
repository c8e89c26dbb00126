# app/util/timeutil.py
from __future__ import annotations

import time


def now_ts() -> int:
    """Unix time in whole seconds."""
    return int(time.time())


def now_ms() -> int:
    return int(time.time() * 1000)


def monotonic_ns() -> int:
    """Ordering clock for answers within one question. Not wall time."""
    return time.monotonic_ns()
