import threading
import time

from envpromote.gateway.time.abc import Time


class RealTime(Time):
    def monotonic(self) -> float:
        return time.monotonic()

    def wait(self, seconds: float, cancel: threading.Event | None) -> bool:
        if cancel is None:
            time.sleep(seconds)
            return False
        return cancel.wait(timeout=seconds)
