import time
from typing import Callable

# Every timestamp handled by the store is epoch milliseconds.
Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


__all__ = ["Clock", "now_ms"]
