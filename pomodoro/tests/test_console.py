from __future__ import annotations

import io
import unittest

from pomodoro.alarm import Alarm
from pomodoro.clock import FakeClock
from pomodoro.console import ConsoleRunner, render_bar


class TestConsoleRunner(unittest.TestCase):
    def test_countdown_runs_to_expiry(self) -> None:
        output = io.StringIO()
        clock = FakeClock()
        alarm = Alarm(sound=False, notify=False, stream=output)
        runner = ConsoleRunner(clock=clock, alarm=alarm, stream=output)

        result = runner.run(3)

        self.assertFalse(result.interrupted)
        self.assertEqual(result.ticks, 3)
        self.assertEqual(result.remaining_sec, 0)
        self.assertEqual(alarm.rings, 1)
        self.assertEqual(clock.monotonic(), 2.0)
        text = output.getvalue()
        self.assertIn("开始倒计时：00:00:03", text)
        self.assertIn("剩余 00:00:02", text)
        self.assertIn("时间到！", text)

    def test_ctrl_c_cancels_without_alarm(self) -> None:
        output = io.StringIO()
        alarm = Alarm(sound=True, notify=False, stream=output)
        runner = ConsoleRunner(
            clock=FakeClock(interrupt_on_sleep_call=2),
            alarm=alarm,
            stream=output,
        )

        result = runner.run(10)

        self.assertTrue(result.interrupted)
        self.assertEqual(result.ticks, 2)
        self.assertEqual(result.remaining_sec, 8)
        self.assertEqual(alarm.rings, 0)
        self.assertIn("已取消，剩余 00:00:08", output.getvalue())
        self.assertNotIn("\a", output.getvalue())

    def test_render_bar(self) -> None:
        self.assertEqual(render_bar(1.0, width=4), "####")
        self.assertEqual(render_bar(0.5, width=4), "##--")
        self.assertEqual(render_bar(0.0, width=4), "----")
        self.assertEqual(render_bar(7.0, width=2), "##")


if __name__ == "__main__":
    unittest.main()
