"""Pomodoro：单屏番茄钟倒计时，支持命令行、Tk 与桌面界面。"""

from .cli import main
from .gui import launch_gui

__version__ = "0.1.0"

__all__ = ["main", "launch_gui", "__version__"]
