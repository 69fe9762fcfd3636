from __future__ import annotations

from pathlib import Path


def launch_gui(settings_path: Path | None = None) -> int:
    from .desktop.main import launch_desktop

    return launch_desktop(settings_path=settings_path)


def launch_legacy_tk_gui(settings_path: Path | None = None) -> int:
    from .legacy_gui import launch_gui as launch_legacy

    return launch_legacy(settings_path=settings_path)
