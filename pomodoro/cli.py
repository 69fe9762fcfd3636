from __future__ import annotations

import argparse
import logging
import math
import os
from pathlib import Path
import sys

from .alarm import Alarm
from .clock import RealClock
from .console import ConsoleRunner
from .desktop import launch_desktop
from .gui import launch_legacy_tk_gui
from .settings import (
    SETTINGS_ENV_VAR,
    Settings,
    default_settings_path,
    load_settings,
    save_settings,
)
from .timer import format_countdown, validate_duration

LOG_LEVEL_ENV_VAR = "POMODORO_LOG_LEVEL"


def setup_logging(level_name: str | None) -> None:
    name = (level_name or os.environ.get(LOG_LEVEL_ENV_VAR, "") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pomodoro",
        description="Pomodoro：单屏番茄钟倒计时（命令行 / Tk / 桌面）",
    )
    parser.add_argument(
        "--settings",
        default=None,
        help=f"配置文件路径（默认 ~/.pomodoro/settings.json，可用 {SETTINGS_ENV_VAR} 覆盖）",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"日志级别（DEBUG/INFO/WARNING，默认读取 {LOG_LEVEL_ENV_VAR}）",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="在终端里开始一次倒计时")
    duration_group = run_parser.add_mutually_exclusive_group()
    duration_group.add_argument("--duration", type=int, default=None, help="倒计时时长（秒）")
    duration_group.add_argument("--minutes", type=float, default=None, help="倒计时时长（分钟）")
    run_parser.add_argument(
        "--tick-seconds",
        type=float,
        default=None,
        help="每次倒数 1 秒的间隔（秒，>0，默认读取配置）",
    )
    run_parser.add_argument("--no-sound", action="store_true", help="禁用提示音")
    run_parser.add_argument("--notify", action="store_true", help="启用桌面通知")

    subparsers.add_parser("gui", help="启动桌面界面（失败时回退到 Tk）")
    subparsers.add_parser("tk", help="直接启动 Tk 界面")

    config_parser = subparsers.add_parser("config", help="查看或修改配置")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="显示当前配置")
    set_parser = config_sub.add_parser("set", help="修改一个配置项")
    set_parser.add_argument("key", help="配置项名称")
    set_parser.add_argument("value", help="新值")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings_path = Path(args.settings) if args.settings else default_settings_path()

    if args.command == "run":
        return _handle_run(args, load_settings(settings_path), parser)
    if args.command == "gui":
        return _handle_gui(settings_path)
    if args.command == "tk":
        return launch_legacy_tk_gui(settings_path)
    if args.command == "config":
        return _handle_config(args, settings_path, parser)

    parser.print_help()
    return 2


def _resolve_duration(args: argparse.Namespace, settings: Settings) -> int:
    if args.duration is not None:
        return args.duration
    if args.minutes is not None:
        if not math.isfinite(args.minutes):
            raise ValueError(f"--minutes 必须是有限数：{args.minutes}")
        return int(round(args.minutes * 60))
    return settings.duration_seconds


def _handle_run(args: argparse.Namespace, settings: Settings, parser: argparse.ArgumentParser) -> int:
    try:
        duration = validate_duration(_resolve_duration(args, settings))
    except ValueError as exc:
        parser.error(str(exc))

    tick_seconds = settings.tick_seconds if args.tick_seconds is None else args.tick_seconds
    if not math.isfinite(tick_seconds) or tick_seconds <= 0:
        parser.error("--tick-seconds 必须是大于 0 的有限数")

    alarm = Alarm(
        sound=settings.sound and not args.no_sound,
        notify=settings.notify or bool(args.notify),
        stream=sys.stdout,
    )
    runner = ConsoleRunner(clock=RealClock(), alarm=alarm, stream=sys.stdout, tick_seconds=tick_seconds)
    result = runner.run(duration)
    return 130 if result.interrupted else 0


def _handle_gui(settings_path: Path) -> int:
    result = launch_desktop(settings_path)
    if result == 0:
        return 0
    print("回退到 Tk GUI...")
    return launch_legacy_tk_gui(settings_path)


def _handle_config(args: argparse.Namespace, settings_path: Path, parser: argparse.ArgumentParser) -> int:
    settings = load_settings(settings_path)

    if args.config_command == "set":
        try:
            settings = settings.with_value(args.key, args.value)
        except ValueError as exc:
            parser.error(str(exc))
        save_settings(settings, settings_path)
        print(f"配置已保存：{settings_path}")

    print(f"[{settings_path}]")
    for key, value in settings.to_dict().items():
        if key == "duration_seconds":
            print(f"{key} = {value}  ({format_countdown(value)})")
        else:
            print(f"{key} = {value}")
    return 0
