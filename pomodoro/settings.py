from __future__ import annotations

from dataclasses import dataclass, fields, replace
import json
import logging
import math
import os
from pathlib import Path
from typing import Any

from .timer import DEFAULT_DURATION_SECONDS, TICK_INTERVAL_SECONDS, validate_duration

logger = logging.getLogger(__name__)

SETTINGS_DIR_NAME = ".pomodoro"
SETTINGS_FILE_NAME = "settings.json"
SETTINGS_ENV_VAR = "POMODORO_SETTINGS"

_TRUE_WORDS = {"1", "true", "yes", "y", "on"}
_FALSE_WORDS = {"0", "false", "no", "n", "off", ""}


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_WORDS:
            return True
        if normalized in _FALSE_WORDS:
            return False
    return default


def _as_duration(value: Any, default: int) -> int:
    try:
        return validate_duration(int(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _as_interval(value: Any, default: float) -> float:
    try:
        interval = float(value)
    except (TypeError, ValueError):
        return default
    return interval if math.isfinite(interval) and interval > 0 else default


@dataclass(frozen=True)
class Settings:
    duration_seconds: int = DEFAULT_DURATION_SECONDS
    tick_seconds: float = TICK_INTERVAL_SECONDS
    sound: bool = True
    notify: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_seconds": self.duration_seconds,
            "tick_seconds": self.tick_seconds,
            "sound": self.sound,
            "notify": self.notify,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Settings:
        return cls(
            duration_seconds=_as_duration(payload.get("duration_seconds"), DEFAULT_DURATION_SECONDS),
            tick_seconds=_as_interval(payload.get("tick_seconds"), TICK_INTERVAL_SECONDS),
            sound=_as_bool(payload.get("sound", True), True),
            notify=_as_bool(payload.get("notify", False), False),
        )

    def with_value(self, key: str, text: str) -> Settings:
        """Strict single-field update used by `pomodoro config set`."""
        names = {item.name for item in fields(self)}
        if key not in names:
            raise ValueError(f"未知配置项：{key}（可选：{', '.join(sorted(names))}）")

        if key == "duration_seconds":
            try:
                number = int(text)
            except ValueError as exc:
                raise ValueError(f"{key} 不是有效整数：{text}") from exc
            return replace(self, duration_seconds=validate_duration(number))

        if key == "tick_seconds":
            try:
                interval = float(text)
            except ValueError as exc:
                raise ValueError(f"{key} 不是有效数字：{text}") from exc
            if not math.isfinite(interval) or interval <= 0:
                raise ValueError(f"{key} 必须是大于 0 的有限数")
            return replace(self, tick_seconds=interval)

        normalized = text.strip().lower()
        if normalized not in _TRUE_WORDS | _FALSE_WORDS or not normalized:
            raise ValueError(f"{key} 需要布尔值（true/false）：{text}")
        return replace(self, **{key: normalized in _TRUE_WORDS})


def default_settings_path(home: Path | None = None) -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR, "").strip()
    if override and home is None:
        return Path(override)
    base = home if home is not None else Path.home()
    return base / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME


def load_settings(path: Path | None = None) -> Settings:
    target = path or default_settings_path()
    if not target.exists():
        return Settings()
    try:
        with target.open("r", encoding="utf-8") as fp:
            payload = json.load(fp)
    except (OSError, ValueError) as exc:
        logger.warning("settings file %s unreadable, using defaults: %s", target, exc)
        return Settings()
    if not isinstance(payload, dict):
        logger.warning("settings file %s is not a JSON object, using defaults", target)
        return Settings()
    return Settings.from_dict(payload)


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    target = path or default_settings_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path = target.with_suffix(target.suffix + ".tmp")
    with temp_path.open("w", encoding="utf-8") as fp:
        json.dump(settings.to_dict(), fp, indent=2, ensure_ascii=False, sort_keys=True)
        fp.write("\n")
    temp_path.replace(target)
    return target
