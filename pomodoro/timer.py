from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import TYPE_CHECKING, Callable
import weakref

from .scheduler import IntervalScheduler, TickCallback

if TYPE_CHECKING:
    from .alarm import Alarm

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 60
TICK_INTERVAL_SECONDS = 1.0
MAX_DURATION_SECONDS = 24 * 3600 - 1


class TimerStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class TimerStateError(RuntimeError):
    """Raised when an operation is not valid in the current timer state."""


ProgressCallback = Callable[[str, dict[str, object]], None]


def split_seconds(seconds: int) -> tuple[int, int, int]:
    total = max(0, int(seconds))
    minutes, sec = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    return hours, minutes, sec


def format_countdown(seconds: int) -> str:
    hours, minutes, sec = split_seconds(seconds)
    return f"{hours:02d}:{minutes:02d}:{sec:02d}"


def compute_progress(remaining_sec: int, total_sec: int) -> float:
    if total_sec <= 0:
        return 0.0
    return min(1.0, max(0.0, remaining_sec / total_sec))


def validate_duration(seconds: int) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise ValueError(f"倒计时时长必须是整数秒：{seconds!r}")
    if seconds <= 0:
        raise ValueError("倒计时时长必须大于 0 秒")
    if seconds > MAX_DURATION_SECONDS:
        raise ValueError(f"倒计时时长不能超过 {format_countdown(MAX_DURATION_SECONDS)}")
    return seconds


@dataclass(frozen=True)
class TimerSnapshot:
    status: TimerStatus
    total_sec: int
    remaining_sec: int
    ticks: int = 0

    @property
    def hours(self) -> int:
        return split_seconds(self.remaining_sec)[0]

    @property
    def minutes(self) -> int:
        return split_seconds(self.remaining_sec)[1]

    @property
    def seconds(self) -> int:
        return split_seconds(self.remaining_sec)[2]

    @property
    def display(self) -> str:
        return format_countdown(self.remaining_sec)

    @property
    def progress(self) -> float:
        return compute_progress(self.remaining_sec, self.total_sec)

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status.value,
            "total_sec": self.total_sec,
            "remaining_sec": self.remaining_sec,
            "hours": self.hours,
            "minutes": self.minutes,
            "seconds": self.seconds,
            "display": self.display,
            "progress": self.progress,
            "ticks": self.ticks,
        }


class SessionController:
    """Countdown state machine: Idle -> Running <-> Paused -> Idle.

    Views observe it through `progress_callback(event, payload)`; the events
    are ``duration``, ``session_start``, ``tick``, ``pause``, ``resume``,
    ``cancel`` and ``expire``. The scheduler only holds a weak reference to
    the controller, so the owner must call `close()` (or use the controller
    as a context manager) to release the tick source.
    """

    def __init__(
        self,
        scheduler: IntervalScheduler,
        alarm: Alarm | None = None,
        progress_callback: ProgressCallback | None = None,
        duration_seconds: int = DEFAULT_DURATION_SECONDS,
        tick_seconds: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        if not math.isfinite(tick_seconds) or tick_seconds <= 0:
            raise ValueError("刷新间隔必须是大于 0 的有限秒数")
        self.scheduler = scheduler
        self.alarm = alarm
        self.progress_callback = progress_callback
        self.tick_seconds = float(tick_seconds)
        self._status = TimerStatus.IDLE
        self._total_sec = validate_duration(duration_seconds)
        self._remaining_sec = 0
        self._ticks = 0
        self._closed = False

    def __enter__(self) -> SessionController:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def status(self) -> TimerStatus:
        return self._status

    @property
    def total_sec(self) -> int:
        return self._total_sec

    @property
    def remaining_sec(self) -> int:
        return self._remaining_sec

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            status=self._status,
            total_sec=self._total_sec,
            remaining_sec=self._remaining_sec,
            ticks=self._ticks,
        )

    def select_duration(self, seconds: int) -> None:
        if self._status is not TimerStatus.IDLE:
            raise TimerStateError("只能在空闲状态下设置倒计时时长")
        self._total_sec = validate_duration(seconds)
        logger.debug("duration selected: %ss", self._total_sec)
        self._emit("duration")

    def toggle(self) -> TimerStatus:
        if self._status is TimerStatus.IDLE:
            self._start_session()
        elif self._status is TimerStatus.RUNNING:
            self.scheduler.pause()
            self._status = TimerStatus.PAUSED
            logger.debug("paused at %ss", self._remaining_sec)
            self._emit("pause")
        else:
            self.scheduler.resume()
            self._status = TimerStatus.RUNNING
            logger.debug("resumed at %ss", self._remaining_sec)
            self._emit("resume")
        return self._status

    def cancel(self) -> bool:
        """Stop the current session. Returns False (and does nothing) when idle."""
        if self._status is TimerStatus.IDLE:
            return False
        cancelled_at = self._remaining_sec
        self._reset()
        logger.debug("cancelled with %ss left", cancelled_at)
        self._emit("cancel", cancelled_at_sec=cancelled_at)
        return True

    def on_tick(self) -> None:
        if self._status is not TimerStatus.RUNNING:
            logger.debug("tick ignored while %s", self._status.value)
            return

        self._remaining_sec = max(0, self._remaining_sec - 1)
        self._ticks += 1
        self._emit("tick")

        if self._remaining_sec <= 0:
            self._expire()

    def close(self) -> None:
        if self._status is not TimerStatus.IDLE:
            self._reset()
        else:
            self.scheduler.stop()
        self._closed = True

    def _start_session(self) -> None:
        if self._closed:
            raise TimerStateError("计时器已关闭")
        self._remaining_sec = self._total_sec
        self._ticks = 0
        self._status = TimerStatus.RUNNING
        logger.debug("session started: %ss", self._total_sec)
        self._emit("session_start")
        try:
            self.scheduler.start(self._tick_callback(), self.tick_seconds)
        except Exception:
            self._status = TimerStatus.IDLE
            self._remaining_sec = 0
            raise

    def _expire(self) -> None:
        total = self._total_sec
        self._reset()
        logger.info("countdown of %s finished", format_countdown(total))
        self._emit("expire")
        if self.alarm is not None:
            self.alarm.ring(f"{format_countdown(total)} 倒计时结束")

    def _reset(self) -> None:
        self.scheduler.stop()
        self._status = TimerStatus.IDLE
        self._remaining_sec = 0
        self._ticks = 0

    def _tick_callback(self) -> TickCallback:
        handler_ref = weakref.WeakMethod(self.on_tick)

        def _tick() -> None:
            handler = handler_ref()
            if handler is not None:
                handler()

        return _tick

    def _emit(self, event: str, **extra: object) -> None:
        if self.progress_callback is None:
            return
        payload = self.snapshot().to_dict()
        payload.update(extra)
        self.progress_callback(event, payload)
