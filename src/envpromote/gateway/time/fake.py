"""Fake clock for testing polling loops without wall-clock delays."""

import threading

from envpromote.gateway.time.abc import Time


class FakeTime(Time):
    """Virtual clock that advances only when `wait` is called.

    Mutation Tracking:
    -----------------
    - sleep_calls: durations passed to wait(), in call order

    `cancel_after_waits` sets the cancel event passed to wait() once that many
    waits have completed, simulating a caller pressing Ctrl-C mid-promotion.
    """

    def __init__(self, *, start: float = 0.0, cancel_after_waits: int | None = None) -> None:
        self._now = start
        self._cancel_after_waits = cancel_after_waits
        self._sleep_calls: list[float] = []

    def monotonic(self) -> float:
        return self._now

    def wait(self, seconds: float, cancel: threading.Event | None) -> bool:
        if cancel is not None and cancel.is_set():
            return True
        self._sleep_calls.append(seconds)
        limit = self._cancel_after_waits
        if limit is not None and len(self._sleep_calls) >= limit and cancel is not None:
            cancel.set()
            return True
        self._now += seconds
        return False

    @property
    def sleep_calls(self) -> list[float]:
        return list(self._sleep_calls)
