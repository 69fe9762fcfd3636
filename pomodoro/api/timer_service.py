from __future__ import annotations

from dataclasses import replace
import logging
from pathlib import Path
import queue
from threading import Lock
from typing import Any

from ..alarm import Alarm
from ..scheduler import ThreadScheduler
from ..settings import Settings, default_settings_path, load_settings, save_settings
from ..timer import SessionController, TimerSnapshot

logger = logging.getLogger(__name__)


class TimerService:
    """Thread-safe wrapper around one SessionController.

    Every controller call and every tick runs under `_lock`, so progress
    events reach `_on_event` with the lock already held.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._settings_path = default_settings_path()
        self._settings = Settings()
        self._subscribers: list[queue.Queue[dict[str, Any]]] = []
        self._controller = self._build_controller()

    @property
    def settings_path(self) -> Path:
        return self._settings_path

    def configure(self, settings_path: Path) -> None:
        with self._lock:
            self._controller.close()
            self._settings_path = Path(settings_path)
            self._settings = load_settings(self._settings_path)
            self._controller = self._build_controller()

    def state(self) -> TimerSnapshot:
        with self._lock:
            return self._controller.snapshot()

    def select_duration(self, seconds: int) -> TimerSnapshot:
        with self._lock:
            self._controller.select_duration(seconds)
            self._settings = replace(self._settings, duration_seconds=self._controller.total_sec)
            try:
                save_settings(self._settings, self._settings_path)
            except OSError as exc:
                logger.warning("could not save settings to %s: %s", self._settings_path, exc)
            return self._controller.snapshot()

    def toggle(self) -> TimerSnapshot:
        with self._lock:
            self._controller.toggle()
            return self._controller.snapshot()

    def cancel(self) -> TimerSnapshot:
        with self._lock:
            self._controller.cancel()
            return self._controller.snapshot()

    def shutdown(self) -> None:
        with self._lock:
            self._controller.close()

    def subscribe(self) -> queue.Queue[dict[str, Any]]:
        q: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=200)
        with self._lock:
            self._subscribers.append(q)
            q.put_nowait({"event": "state", **self._controller.snapshot().to_dict()})
        return q

    def unsubscribe(self, q: queue.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item is not q]

    def _build_controller(self) -> SessionController:
        return SessionController(
            ThreadScheduler(callback_lock=self._lock),
            alarm=Alarm(sound=self._settings.sound, notify=self._settings.notify),
            progress_callback=self._on_event,
            duration_seconds=self._settings.duration_seconds,
            tick_seconds=self._settings.tick_seconds,
        )

    def _broadcast(self, event: dict[str, Any]) -> None:
        alive: list[queue.Queue[dict[str, Any]]] = []
        for q in self._subscribers:
            try:
                q.put_nowait(event)
                alive.append(q)
            except queue.Full:
                continue
        self._subscribers = alive

    def _on_event(self, event: str, payload: dict[str, Any]) -> None:
        self._broadcast({"event": event, **payload})


timer_service = TimerService()
