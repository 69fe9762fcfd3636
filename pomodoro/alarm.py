from __future__ import annotations

import logging
import platform
import shutil
import subprocess
import sys
from typing import TextIO

logger = logging.getLogger(__name__)

ALARM_TITLE = "Pomodoro"

# First available command wins; all of them return immediately.
SOUND_COMMANDS: dict[str, list[list[str]]] = {
    "darwin": [["afplay", "/System/Library/Sounds/Glass.aiff"]],
    "linux": [
        ["canberra-gtk-play", "--id", "alarm-clock-elapsed"],
        ["paplay", "/usr/share/sounds/freedesktop/stereo/alarm-clock-elapsed.oga"],
    ],
}


class Alarm:
    """One-shot expiry signal: a sound and, optionally, a desktop notification.

    Neither path raises. Without a usable sound command the terminal bell is
    written to `stream`; without a notification command the message is.
    """

    def __init__(
        self,
        sound: bool = True,
        notify: bool = False,
        stream: TextIO | None = None,
        title: str = ALARM_TITLE,
    ) -> None:
        self.sound = sound
        self.notify = notify
        self.stream = stream or sys.stdout
        self.title = title
        self.rings = 0

    def ring(self, message: str) -> None:
        self.rings += 1
        if self.sound and not self._play_sound():
            self.stream.write("\a")
            self.stream.flush()
        if self.notify:
            self._send_notification(message)

    def _play_sound(self) -> bool:
        system_name = platform.system().lower()
        if system_name == "windows":
            return self._windows_beep()

        for command in SOUND_COMMANDS.get(system_name, []):
            if shutil.which(command[0]) is None:
                continue
            try:
                subprocess.Popen(
                    command,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as exc:
                logger.warning("alarm sound via %s failed: %s", command[0], exc)
                continue
            return True
        return False

    @staticmethod
    def _windows_beep() -> bool:
        try:
            import winsound

            winsound.MessageBeep(winsound.MB_ICONEXCLAMATION)
        except (ImportError, RuntimeError) as exc:
            logger.warning("winsound unavailable: %s", exc)
            return False
        return True

    def _send_notification(self, message: str) -> None:
        sent = False
        system_name = platform.system().lower()

        try:
            if system_name == "darwin" and shutil.which("osascript"):
                script = (
                    "display notification "
                    f"\"{self._escape(message)}\" with title \"{self._escape(self.title)}\""
                )
                result = subprocess.run(
                    ["osascript", "-e", script],
                    check=False,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                sent = result.returncode == 0
            elif system_name == "linux" and shutil.which("notify-send"):
                result = subprocess.run(
                    ["notify-send", "--urgency=critical", self.title, message],
                    check=False,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                sent = result.returncode == 0
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("desktop notification failed: %s", exc)
            sent = False

        if not sent:
            self.stream.write(f"[提醒] {self.title}: {message}\n")
            self.stream.flush()

    @staticmethod
    def _escape(text: str) -> str:
        return text.replace("\\", "\\\\").replace('"', '\\"')
