from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def monotonic(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class RealClock:
    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(max(0.0, seconds))


class FakeClock:
    """Virtual clock: `sleep` advances time instantly.

    `interrupt_on_sleep_call` raises KeyboardInterrupt on the given sleep call,
    which is how tests simulate Ctrl-C.
    """

    def __init__(
        self,
        start: float = 0.0,
        interrupt_on_sleep_call: int | None = None,
    ) -> None:
        self._current = float(start)
        self._interrupt_on_sleep_call = interrupt_on_sleep_call
        self.sleep_calls = 0

    def monotonic(self) -> float:
        return self._current

    def sleep(self, seconds: float) -> None:
        self.sleep_calls += 1
        if (
            self._interrupt_on_sleep_call is not None
            and self.sleep_calls >= self._interrupt_on_sleep_call
        ):
            raise KeyboardInterrupt
        self._current += max(0.0, seconds)
