from __future__ import annotations

import io
from contextlib import redirect_stdout
from pathlib import Path
from tempfile import TemporaryDirectory
import sys
import unittest
from unittest import mock

from pomodoro.desktop import launch_desktop


class TestDesktop(unittest.TestCase):
    def test_missing_webview_returns_fallback_code(self) -> None:
        out = io.StringIO()
        with mock.patch.dict(sys.modules, {"webview": None}), redirect_stdout(out):
            code = launch_desktop(Path("settings.json"))
        self.assertEqual(code, 2)
        self.assertIn("pip install -e .", out.getvalue())

    def test_serves_api_app_in_webview(self) -> None:
        try:
            import pomodoro.api.app  # noqa: F401
        except Exception as exc:  # pragma: no cover
            self.skipTest(f"fastapi unavailable: {exc}")

        fake_uvicorn = mock.MagicMock()
        fake_webview = mock.MagicMock()
        with TemporaryDirectory() as tmp:
            settings_path = Path(tmp) / "settings.json"
            with mock.patch.dict(sys.modules, {"uvicorn": fake_uvicorn, "webview": fake_webview}), mock.patch(
                "pomodoro.api.app.create_app"
            ) as create_app, mock.patch("pomodoro.desktop.main._wait_for_api", return_value=True):
                code = launch_desktop(settings_path)

        self.assertEqual(code, 0)
        create_app.assert_called_once_with(settings_path=settings_path)
        self.assertIs(fake_uvicorn.Config.call_args.args[0], create_app.return_value)
        url = fake_webview.create_window.call_args.args[1]
        self.assertTrue(url.startswith("http://127.0.0.1:"))
        fake_webview.start.assert_called_once()
        self.assertTrue(fake_uvicorn.Server.return_value.should_exit)


if __name__ == "__main__":
    unittest.main()
