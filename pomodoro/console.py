from __future__ import annotations

from dataclasses import dataclass
import sys
from typing import TextIO

from .alarm import Alarm
from .clock import Clock
from .scheduler import ClockScheduler
from .timer import TICK_INTERVAL_SECONDS, SessionController, format_countdown

BAR_WIDTH = 24


@dataclass(frozen=True)
class RunResult:
    interrupted: bool
    total_sec: int
    remaining_sec: int
    ticks: int


def render_bar(progress: float, width: int = BAR_WIDTH) -> str:
    filled = int(round(min(1.0, max(0.0, progress)) * width))
    return "#" * filled + "-" * (width - filled)


class ConsoleRunner:
    """Runs one countdown in the terminal. Ctrl-C cancels the session."""

    def __init__(
        self,
        clock: Clock,
        alarm: Alarm,
        stream: TextIO | None = None,
        tick_seconds: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        self.clock = clock
        self.alarm = alarm
        self.stream = stream or sys.stdout
        self.tick_seconds = tick_seconds
        self._remaining = 0
        self._ticks = 0

    def run(self, duration_seconds: int) -> RunResult:
        self._remaining = duration_seconds
        self._ticks = 0
        interrupted = False
        scheduler = ClockScheduler(self.clock)

        with SessionController(
            scheduler,
            alarm=self.alarm,
            progress_callback=self._on_event,
            duration_seconds=duration_seconds,
            tick_seconds=self.tick_seconds,
        ) as controller:
            self.stream.write(f"开始倒计时：{format_countdown(duration_seconds)}\n")
            self.stream.flush()
            controller.toggle()
            try:
                scheduler.run()
            except KeyboardInterrupt:
                interrupted = controller.cancel()

        return RunResult(
            interrupted=interrupted,
            total_sec=duration_seconds,
            remaining_sec=self._remaining,
            ticks=self._ticks,
        )

    def _on_event(self, event: str, payload: dict[str, object]) -> None:
        if event == "tick":
            self._remaining = int(payload["remaining_sec"])  # type: ignore[call-overload]
            self._ticks += 1
            self._render(str(payload["display"]), float(payload["progress"]))  # type: ignore[arg-type]
        elif event == "expire":
            self._clear_line()
            self.stream.write("时间到！\n")
            self.stream.flush()
        elif event == "cancel":
            self._clear_line()
            left = int(payload.get("cancelled_at_sec", 0))  # type: ignore[call-overload]
            self._remaining = left
            self.stream.write(f"已取消，剩余 {format_countdown(left)}\n")
            self.stream.flush()

    def _render(self, display: str, progress: float) -> None:
        self.stream.write(f"\r剩余 {display} [{render_bar(progress)}] {progress:4.0%}")
        self.stream.flush()

    def _clear_line(self) -> None:
        self.stream.write("\r" + (" " * 60) + "\r")
        self.stream.flush()
