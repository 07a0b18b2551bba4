"""Abstract clock used by polling loops so tests never really sleep."""

import threading
from abc import ABC, abstractmethod


class Time(ABC):
    """Monotonic clock plus a cancellable sleep."""

    @abstractmethod
    def monotonic(self) -> float:
        """Seconds from an arbitrary, never-decreasing reference point."""
        ...

    @abstractmethod
    def wait(self, seconds: float, cancel: threading.Event | None) -> bool:
        """Block for up to `seconds`.

        Returns:
            True if `cancel` was set before or during the wait, False if the
            full duration elapsed.
        """
        ...
