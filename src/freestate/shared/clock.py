"""Wall clock in epoch milliseconds, the unit of every stored timestamp."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)
