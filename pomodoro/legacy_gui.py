from __future__ import annotations

from dataclasses import replace
import logging
import math
from pathlib import Path
from typing import Any

from .alarm import Alarm
from .scheduler import TkScheduler
from .settings import default_settings_path, load_settings, save_settings
from .timer import SessionController, TimerStateError, TimerStatus, format_countdown, split_seconds

try:
    import tkinter as tk
    from tkinter import messagebox, ttk
except Exception:
    tk = None
    ttk = None
    messagebox = None

logger = logging.getLogger(__name__)

SPIN_FRAMES = 10
TOMATO_SIZE = 120


class PomodoroGUI:
    def __init__(self, settings_path: Path) -> None:
        if tk is None or ttk is None:
            raise RuntimeError("当前 Python 环境不可用 tkinter。")

        self.settings_path = Path(settings_path)
        self.settings = load_settings(self.settings_path)

        self.root = tk.Tk()
        self.root.title("Pomodoro")
        self.root.geometry("360x440")
        self.root.minsize(320, 420)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        hours, minutes, seconds = split_seconds(self.settings.duration_seconds)
        self.hours_var = tk.StringVar(value=str(hours))
        self.minutes_var = tk.StringVar(value=str(minutes))
        self.seconds_var = tk.StringVar(value=str(seconds))
        self.countdown_var = tk.StringVar(value=format_countdown(self.settings.duration_seconds))
        self.progress_var = tk.DoubleVar(value=1.0)
        self.status_var = tk.StringVar(value="选择时长后点击开始")

        self._spin_after_id: str | None = None

        self.controller = SessionController(
            TkScheduler(self.root),
            alarm=Alarm(sound=self.settings.sound, notify=self.settings.notify),
            progress_callback=self._handle_event,
            duration_seconds=self.settings.duration_seconds,
            tick_seconds=self.settings.tick_seconds,
        )

        self._build_layout()
        self._show_picker(True)

    def run(self) -> None:
        self.root.mainloop()

    def _build_layout(self) -> None:
        frame_main = ttk.Frame(self.root, padding=16)
        frame_main.pack(fill=tk.BOTH, expand=True)

        self.canvas = tk.Canvas(
            frame_main,
            width=TOMATO_SIZE,
            height=TOMATO_SIZE,
            highlightthickness=0,
        )
        self.canvas.pack(pady=(0, 12))
        pad = 14
        self.canvas.create_oval(pad, pad, TOMATO_SIZE - pad, TOMATO_SIZE - pad, fill="#e5484d", outline="")
        self._stem = self.canvas.create_line(0, 0, 0, 0, width=6, fill="#2f9e44", capstyle=tk.ROUND)
        self._draw_stem(0.0)

        self.frame_picker = ttk.Frame(frame_main)
        for column, (var, upper, unit) in enumerate(
            (
                (self.hours_var, 23, "时"),
                (self.minutes_var, 59, "分"),
                (self.seconds_var, 59, "秒"),
            )
        ):
            ttk.Spinbox(
                self.frame_picker,
                from_=0,
                to=upper,
                textvariable=var,
                width=4,
                wrap=True,
                justify=tk.CENTER,
            ).grid(row=0, column=column * 2, padx=(0, 2))
            ttk.Label(self.frame_picker, text=unit).grid(row=0, column=column * 2 + 1, padx=(0, 8))

        self.frame_info = ttk.Frame(frame_main)
        ttk.Label(
            self.frame_info,
            textvariable=self.countdown_var,
            font=("Consolas", 32, "bold"),
        ).pack()
        ttk.Progressbar(
            self.frame_info,
            variable=self.progress_var,
            maximum=1.0,
            length=260,
            mode="determinate",
        ).pack(pady=(8, 0))

        frame_actions = ttk.Frame(frame_main)
        frame_actions.pack(side=tk.BOTTOM, pady=(12, 0))

        self.btn_cancel = ttk.Button(frame_actions, text="取消", command=self._on_cancel, state=tk.DISABLED)
        self.btn_cancel.pack(side=tk.LEFT)
        self.btn_toggle = ttk.Button(frame_actions, text="开始", command=self._on_toggle)
        self.btn_toggle.pack(side=tk.LEFT, padx=(12, 0))

        ttk.Label(frame_main, textvariable=self.status_var).pack(side=tk.BOTTOM, pady=(8, 0))

    def _show_picker(self, visible: bool) -> None:
        if visible:
            self.frame_info.pack_forget()
            self.frame_picker.pack(pady=(8, 0))
        else:
            self.frame_picker.pack_forget()
            self.frame_info.pack(pady=(8, 0))

    def _on_toggle(self) -> None:
        if self.controller.status is TimerStatus.IDLE:
            try:
                duration = self._read_picker()
                self.controller.select_duration(duration)
            except (ValueError, TimerStateError) as exc:
                self._show_error(str(exc))
                return
            self._remember_duration(duration)
        self.controller.toggle()

    def _on_cancel(self) -> None:
        self.controller.cancel()

    def _on_close(self) -> None:
        self._stop_spin()
        self.controller.close()
        self.root.destroy()

    def _handle_event(self, event: str, payload: dict[str, Any]) -> None:
        if event == "session_start":
            self.countdown_var.set(str(payload["display"]))
            self.progress_var.set(1.0)
            self._show_picker(False)
            self.btn_toggle.config(text="暂停")
            self.btn_cancel.config(state=tk.NORMAL)
            self.status_var.set("倒计时进行中")
            return

        if event == "tick":
            self.countdown_var.set(str(payload["display"]))
            self.progress_var.set(float(payload["progress"]))
            self._start_spin()
            return

        if event == "pause":
            self.btn_toggle.config(text="开始")
            self.status_var.set("已暂停")
            return

        if event == "resume":
            self.btn_toggle.config(text="暂停")
            self.status_var.set("倒计时进行中")
            return

        if event in ("cancel", "expire"):
            self._stop_spin()
            self._show_picker(True)
            self.btn_toggle.config(text="开始")
            self.btn_cancel.config(state=tk.DISABLED)
            self.countdown_var.set(format_countdown(self.controller.total_sec))
            self.progress_var.set(1.0)
            self.status_var.set("时间到！" if event == "expire" else "已取消")

    def _start_spin(self) -> None:
        self._stop_spin()
        self._spin_step(0)

    def _spin_step(self, frame: int) -> None:
        # Half turn then full turn within one tick.
        self._draw_stem(2 * math.pi * frame / SPIN_FRAMES)
        if frame >= SPIN_FRAMES:
            self._spin_after_id = None
            return
        delay_ms = max(1, int(self.controller.tick_seconds * 1000 / SPIN_FRAMES))
        self._spin_after_id = self.root.after(delay_ms, self._spin_step, frame + 1)

    def _stop_spin(self) -> None:
        if self._spin_after_id is not None:
            self.root.after_cancel(self._spin_after_id)
            self._spin_after_id = None
        self._draw_stem(0.0)

    def _draw_stem(self, angle: float) -> None:
        center = TOMATO_SIZE / 2
        radius = TOMATO_SIZE / 2 - 6
        inner = radius - 18
        dx, dy = math.sin(angle), -math.cos(angle)
        self.canvas.coords(
            self._stem,
            center + dx * inner,
            center + dy * inner,
            center + dx * radius,
            center + dy * radius,
        )

    def _read_picker(self) -> int:
        hours = self._parse_int(self.hours_var.get(), "小时", 23)
        minutes = self._parse_int(self.minutes_var.get(), "分钟", 59)
        seconds = self._parse_int(self.seconds_var.get(), "秒", 59)
        return hours * 3600 + minutes * 60 + seconds

    def _remember_duration(self, duration: int) -> None:
        if duration == self.settings.duration_seconds:
            return
        self.settings = replace(self.settings, duration_seconds=duration)
        try:
            save_settings(self.settings, self.settings_path)
        except OSError as exc:
            logger.warning("could not save settings to %s: %s", self.settings_path, exc)

    def _show_error(self, message: str) -> None:
        self.status_var.set(message)
        if messagebox is not None:
            messagebox.showerror("Pomodoro", message)

    @staticmethod
    def _parse_int(text: str, field: str, max_value: int) -> int:
        try:
            value = int(text)
        except ValueError as exc:
            raise ValueError(f"{field} 不是有效整数") from exc
        if value < 0 or value > max_value:
            raise ValueError(f"{field} 必须在 0 到 {max_value} 之间")
        return value


def launch_gui(settings_path: Path | None = None) -> int:
    path = Path(settings_path or default_settings_path())
    if tk is None or ttk is None:
        print("当前环境不支持 tkinter，无法启动 GUI。")
        return 2

    try:
        app = PomodoroGUI(path)
    except Exception as exc:
        print(f"GUI 启动失败：{exc}")
        return 2

    app.run()
    return 0
