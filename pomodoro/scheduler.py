from __future__ import annotations

import contextlib
import logging
import math
import threading
import time
from typing import Any, Callable, Protocol

from .clock import Clock, RealClock

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class SchedulerError(RuntimeError):
    """Raised when start/pause/resume break the suspend-resume parity."""


class IntervalScheduler(Protocol):
    """Cancellable interval source.

    The first callback fires right after `start`, then every `interval`
    seconds until `pause` or `stop`. `resume` schedules the next callback one
    full interval later. `stop` is valid in every state, including from inside
    the callback and while paused.
    """

    @property
    def active(self) -> bool:
        ...

    @property
    def paused(self) -> bool:
        ...

    def start(self, callback: TickCallback, interval: float = 1.0) -> None:
        ...

    def pause(self) -> None:
        ...

    def resume(self) -> None:
        ...

    def stop(self) -> None:
        ...


class _BaseScheduler:
    def __init__(self) -> None:
        self._callback: TickCallback | None = None
        self._interval = 1.0
        self._active = False
        self._paused = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def interval(self) -> float:
        return self._interval

    def _begin(self, callback: TickCallback, interval: float) -> None:
        if self._active:
            raise SchedulerError("调度器已在运行，不能重复启动")
        if not math.isfinite(interval) or interval <= 0:
            raise ValueError("间隔必须是大于 0 的有限秒数")
        self._callback = callback
        self._interval = float(interval)
        self._active = True
        self._paused = False
        logger.debug("%s started, interval=%.3fs", type(self).__name__, self._interval)

    def _suspend(self) -> None:
        if not self._active:
            raise SchedulerError("调度器未启动，无法暂停")
        if self._paused:
            raise SchedulerError("调度器已暂停")
        self._paused = True

    def _unsuspend(self) -> None:
        if not self._active or not self._paused:
            raise SchedulerError("调度器未暂停，无法恢复")
        self._paused = False

    def _end(self) -> bool:
        if not self._active:
            return False
        self._active = False
        self._paused = False
        self._callback = None
        logger.debug("%s stopped", type(self).__name__)
        return True


class ManualScheduler(_BaseScheduler):
    """Virtual-time scheduler for tests: nothing fires until `advance`."""

    def __init__(self) -> None:
        super().__init__()
        self.now = 0.0
        self.fired = 0
        self._next_due: float | None = None

    def start(self, callback: TickCallback, interval: float = 1.0) -> None:
        self._begin(callback, interval)
        self._next_due = self.now

    def pause(self) -> None:
        self._suspend()
        self._next_due = None

    def resume(self) -> None:
        self._unsuspend()
        self._next_due = self.now + self._interval

    def stop(self) -> None:
        self._end()
        self._next_due = None

    def advance(self, seconds: float = 0.0) -> int:
        """Move virtual time forward and fire every callback that fell due."""
        target = self.now + max(0.0, seconds)
        fired = 0
        while self._next_due is not None and self._next_due <= target:
            callback = self._callback
            if callback is None:
                break
            self.now = self._next_due
            self._next_due += self._interval
            callback()
            fired += 1
        self.now = target
        self.fired += fired
        return fired


class ClockScheduler(_BaseScheduler):
    """Runs callbacks on the calling thread inside `run()`."""

    def __init__(self, clock: Clock | None = None) -> None:
        super().__init__()
        self.clock = clock or RealClock()
        self._next_due: float | None = None

    def start(self, callback: TickCallback, interval: float = 1.0) -> None:
        self._begin(callback, interval)
        self._next_due = self.clock.monotonic()

    def pause(self) -> None:
        self._suspend()
        self._next_due = None

    def resume(self) -> None:
        self._unsuspend()
        self._next_due = self.clock.monotonic() + self._interval

    def stop(self) -> None:
        self._end()
        self._next_due = None

    def run(self) -> None:
        """Block until stopped. KeyboardInterrupt propagates to the caller."""
        while self._active:
            if self._next_due is None:
                self.clock.sleep(self._interval)
                continue
            delay = self._next_due - self.clock.monotonic()
            if delay > 0:
                self.clock.sleep(delay)
                continue
            self._next_due += self._interval
            callback = self._callback
            if callback is not None:
                callback()


class ThreadScheduler(_BaseScheduler):
    """Fires callbacks from a daemon thread.

    `callback_lock`, when given, is held around every callback so the owner
    can serialize ticks with its own calls. Owners that hold that lock may
    call `pause`/`resume`/`stop` freely: the worker never waits on it while
    holding the internal condition.
    """

    def __init__(
        self,
        callback_lock: Any | None = None,
        name: str = "pomodoro-ticker",
    ) -> None:
        super().__init__()
        self._callback_lock = callback_lock
        self._name = name
        self._cond = threading.Condition()
        self._generation = 0
        self._next_due = 0.0
        self._thread: threading.Thread | None = None

    def start(self, callback: TickCallback, interval: float = 1.0) -> None:
        with self._cond:
            self._begin(callback, interval)
            self._generation += 1
            self._next_due = time.monotonic()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._generation,),
                name=self._name,
                daemon=True,
            )
            self._thread.start()

    def pause(self) -> None:
        with self._cond:
            self._suspend()
            self._cond.notify_all()

    def resume(self) -> None:
        with self._cond:
            self._unsuspend()
            self._next_due = time.monotonic() + self._interval
            self._cond.notify_all()

    def stop(self) -> None:
        with self._cond:
            self._end()
            self._cond.notify_all()

    def join(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _is_current(self, generation: int) -> bool:
        return self._active and self._generation == generation

    def _run(self, generation: int) -> None:
        while True:
            with self._cond:
                if not self._is_current(generation):
                    return
                if self._paused:
                    self._cond.wait()
                    continue
                now = time.monotonic()
                delay = self._next_due - now
                if delay > 0:
                    self._cond.wait(delay)
                    continue
                self._next_due += self._interval
                if self._next_due < now:
                    # Missed ticks (e.g. after system sleep) are dropped.
                    self._next_due = now + self._interval
            self._invoke(generation)

    def _invoke(self, generation: int) -> None:
        guard = self._callback_lock if self._callback_lock is not None else contextlib.nullcontext()
        with guard:
            with self._cond:
                if not self._is_current(generation) or self._paused:
                    return
                callback = self._callback
            if callback is None:
                return
            try:
                callback()
            except Exception:
                logger.exception("interval callback failed")


class TkScheduler(_BaseScheduler):
    """Drives callbacks through Tk's `after`, on the Tk main thread."""

    def __init__(self, widget: Any) -> None:
        super().__init__()
        self._widget = widget
        self._after_id: str | None = None

    def start(self, callback: TickCallback, interval: float = 1.0) -> None:
        self._begin(callback, interval)
        self._schedule(0)

    def pause(self) -> None:
        self._suspend()
        self._cancel_pending()

    def resume(self) -> None:
        self._unsuspend()
        self._schedule(self._interval_ms())

    def stop(self) -> None:
        self._cancel_pending()
        self._end()

    def _interval_ms(self) -> int:
        return max(1, int(round(self._interval * 1000)))

    def _schedule(self, delay_ms: int) -> None:
        self._after_id = self._widget.after(delay_ms, self._fire)

    def _cancel_pending(self) -> None:
        if self._after_id is not None:
            self._widget.after_cancel(self._after_id)
            self._after_id = None

    def _fire(self) -> None:
        self._after_id = None
        if not self._active or self._paused or self._callback is None:
            return
        callback = self._callback
        self._schedule(self._interval_ms())
        callback()
