import time
import random


class FixedDelayLimiter:
    def __init__(self, delay_sec: float) -> None:
        if delay_sec < 0:
            raise ValueError("delay_sec must be >= 0")
        self._delay = delay_sec

    @property
    def delay_sec(self) -> float:
        return self._delay

    def wait(self) -> None:
        if self._delay > 0:
            time.sleep(self._delay)


def backoff_sleep(attempt: int, base: float = 0.5, cap: float = 8.0) -> None:
    t = min(cap, base * (2 ** attempt))
    t *= 0.7 + random.random() * 0.6
    time.sleep(t)
