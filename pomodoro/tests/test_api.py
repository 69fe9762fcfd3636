from __future__ import annotations

import json
from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

import pomodoro


class TestAPI(unittest.TestCase):
    def setUp(self) -> None:
        try:
            from fastapi.testclient import TestClient  # noqa: F401
            from pomodoro.api.app import create_app  # noqa: F401
        except Exception as exc:  # pragma: no cover
            self.skipTest(f"fastapi test client unavailable: {exc}")

        self._tmp = TemporaryDirectory()
        self.settings_path = Path(self._tmp.name) / "settings.json"

    def tearDown(self) -> None:
        from pomodoro.api.timer_service import timer_service

        timer_service.shutdown()
        self._tmp.cleanup()

    def _client(self):
        from fastapi.testclient import TestClient

        from pomodoro.api.app import create_app

        return TestClient(create_app(settings_path=self.settings_path))

    def test_health_meta_and_openapi(self) -> None:
        client = self._client()

        health = client.get("/api/v1/health")
        self.assertEqual(health.status_code, 200)
        self.assertEqual(health.json().get("status"), "ok")

        meta = client.get("/api/v1/meta")
        self.assertEqual(meta.status_code, 200)
        self.assertEqual(meta.json().get("settings_path"), str(self.settings_path))
        self.assertEqual(meta.json().get("version"), pomodoro.__version__)

        openapi = client.get("/openapi.json")
        self.assertEqual(openapi.status_code, 200)
        paths = openapi.json().get("paths", {})
        self.assertIn("/api/v1/timer/stream", paths)
        self.assertIn("/api/v1/timer/toggle", paths)

        screen = client.get("/")
        self.assertEqual(screen.status_code, 200)
        self.assertIn("EventSource", screen.text)

    def test_session_lifecycle(self) -> None:
        client = self._client()

        state = client.get("/api/v1/timer/state").json()
        self.assertEqual(state["status"], "idle")
        self.assertEqual(state["total_sec"], 60)
        self.assertEqual(state["remaining_sec"], 0)

        selected = client.post("/api/v1/timer/duration", json={"seconds": 600})
        self.assertEqual(selected.status_code, 200)
        self.assertEqual(selected.json()["total_sec"], 600)
        saved = json.loads(self.settings_path.read_text(encoding="utf-8"))
        self.assertEqual(saved["duration_seconds"], 600)

        started = client.post("/api/v1/timer/toggle")
        self.assertEqual(started.status_code, 200)
        self.assertEqual(started.json()["status"], "running")
        self.assertIn(started.json()["remaining_sec"], (599, 600))

        busy = client.post("/api/v1/timer/duration", json={"seconds": 30})
        self.assertEqual(busy.status_code, 409)

        paused = client.post("/api/v1/timer/toggle").json()
        self.assertEqual(paused["status"], "paused")
        resumed = client.post("/api/v1/timer/toggle").json()
        self.assertEqual(resumed["status"], "running")
        self.assertLessEqual(resumed["remaining_sec"], paused["remaining_sec"])

        cancelled = client.post("/api/v1/timer/cancel").json()
        self.assertEqual(cancelled["status"], "idle")
        self.assertEqual(cancelled["remaining_sec"], 0)
        self.assertEqual(cancelled["total_sec"], 600)

        again = client.post("/api/v1/timer/cancel")
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.json()["status"], "idle")

    def test_invalid_duration_rejected(self) -> None:
        client = self._client()
        for payload in ({"seconds": 0}, {"seconds": -1}, {"seconds": 86400}, {}):
            with self.subTest(payload=payload):
                response = client.post("/api/v1/timer/duration", json=payload)
                self.assertEqual(response.status_code, 422)


if __name__ == "__main__":
    unittest.main()
