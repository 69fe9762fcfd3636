from __future__ import annotations

import io
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from tempfile import TemporaryDirectory
import unittest
from unittest import mock

from pomodoro import cli
from pomodoro.console import RunResult
from pomodoro.settings import Settings, load_settings, save_settings


class TestCLI(unittest.TestCase):
    def test_run_rejects_non_positive_duration(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            for bad in ("0", "-5"):
                with self.subTest(duration=bad):
                    with self.assertRaises(SystemExit) as exc, redirect_stdout(io.StringIO()):
                        cli.main(["--settings", str(settings_path), "run", "--duration", bad])
                    self.assertEqual(exc.exception.code, 2)

    def test_run_rejects_non_positive_tick_seconds(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            with self.assertRaises(SystemExit) as exc:
                cli.main(["--settings", str(settings_path), "run", "--duration", "5", "--tick-seconds", "0"])
            self.assertEqual(exc.exception.code, 2)

    def test_run_rejects_non_finite_minutes_and_tick(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            for extra in (
                ["--minutes", "inf"],
                ["--minutes", "nan"],
                ["--duration", "5", "--tick-seconds", "inf"],
                ["--duration", "5", "--tick-seconds", "nan"],
            ):
                with self.subTest(args=extra):
                    with mock.patch("pomodoro.cli.ConsoleRunner") as runner_cls, redirect_stderr(io.StringIO()):
                        with self.assertRaises(SystemExit) as exc:
                            cli.main(["--settings", str(settings_path), "run", *extra])
                    self.assertEqual(exc.exception.code, 2)
                    runner_cls.assert_not_called()

    def test_config_set_rejects_infinite_tick(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            with self.assertRaises(SystemExit) as exc, redirect_stderr(io.StringIO()):
                cli.main(["--settings", str(settings_path), "config", "set", "tick_seconds", "inf"])
            self.assertEqual(exc.exception.code, 2)
            self.assertFalse(settings_path.exists())

    def test_run_uses_settings_duration_and_reports_interrupt(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            save_settings(Settings(duration_seconds=90), settings_path)

            with mock.patch("pomodoro.cli.ConsoleRunner") as runner_cls:
                runner_cls.return_value.run.return_value = RunResult(
                    interrupted=True, total_sec=90, remaining_sec=40, ticks=50
                )
                code = cli.main(["--settings", str(settings_path), "run", "--no-sound"])

            self.assertEqual(code, 130)
            runner_cls.return_value.run.assert_called_once_with(90)
            alarm = runner_cls.call_args.kwargs["alarm"]
            self.assertFalse(alarm.sound)

    def test_run_minutes_converted_to_seconds(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            with mock.patch("pomodoro.cli.ConsoleRunner") as runner_cls:
                runner_cls.return_value.run.return_value = RunResult(
                    interrupted=False, total_sec=1500, remaining_sec=0, ticks=1500
                )
                code = cli.main(["--settings", str(settings_path), "run", "--minutes", "25"])

            self.assertEqual(code, 0)
            runner_cls.return_value.run.assert_called_once_with(1500)

    def test_config_set_and_show(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            out = io.StringIO()
            with redirect_stdout(out):
                code = cli.main(["--settings", str(settings_path), "config", "set", "duration_seconds", "1500"])
            self.assertEqual(code, 0)
            self.assertEqual(load_settings(settings_path).duration_seconds, 1500)
            self.assertIn("duration_seconds = 1500  (00:25:00)", out.getvalue())

            out = io.StringIO()
            with redirect_stdout(out):
                cli.main(["--settings", str(settings_path), "config", "show"])
            self.assertIn("sound = True", out.getvalue())

    def test_config_set_rejects_unknown_key(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            with self.assertRaises(SystemExit) as exc:
                cli.main(["--settings", str(settings_path), "config", "set", "colour", "red"])
            self.assertEqual(exc.exception.code, 2)
            self.assertFalse(settings_path.exists())

    def test_gui_falls_back_to_tk(self) -> None:
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            with mock.patch("pomodoro.cli.launch_desktop", return_value=2), mock.patch(
                "pomodoro.cli.launch_legacy_tk_gui", return_value=0
            ) as tk_launch, redirect_stdout(io.StringIO()):
                code = cli.main(["--settings", str(settings_path), "gui"])

            self.assertEqual(code, 0)
            tk_launch.assert_called_once_with(settings_path)


if __name__ == "__main__":
    unittest.main()
