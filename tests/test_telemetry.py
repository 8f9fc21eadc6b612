"""Tests for the telemetry stream reader."""

import sys
import time
import unittest

from tests.mock_pmuc import MockPMUCDir
from wp360_ups.core.telemetry import TelemetryReader, build_telemetry_script
from wp360_ups.core.ups_state import TelemetryReading

SLEEPER = [sys.executable, "-c", "import time; time.sleep(30)"]

GOOD_LINE = ('{"power_voltage": 120, "capacitor_voltage": 85, '
             '"switching_voltage": 50, "pmuc_temperature": 250}\n')


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


class TestLineHandling(unittest.TestCase):

    def setUp(self):
        self.reader = TelemetryReader(command=SLEEPER)
        self.reader.activate()
        self.addCleanup(self.reader.deactivate)
        self.token = self.reader._token

    def test_no_reading_before_first_line(self):
        self.assertIsNone(self.reader.reading)

    def test_valid_line_replaces_reading(self):
        self.reader.on_line(self.token, GOOD_LINE)
        self.assertEqual(self.reader.reading,
                         TelemetryReading(12.0, 8.5, 5.0, 25.0))

    def test_truncated_line_keeps_previous_reading(self):
        self.reader.on_line(self.token, GOOD_LINE)
        self.reader.on_line(self.token, '{"power_volt')
        self.assertEqual(self.reader.reading,
                         TelemetryReading(12.0, 8.5, 5.0, 25.0))

    def test_malformed_lines_do_not_raise(self):
        for line in ("", "\n", "null", '{"power_voltage": }', "garbage"):
            self.reader.on_line(self.token, line)
        self.assertIsNone(self.reader.reading)

    def test_stale_token_ignored(self):
        self.reader.on_line(object(), GOOD_LINE)
        self.assertIsNone(self.reader.reading)

    def test_no_update_after_deactivate(self):
        self.reader.deactivate()
        self.reader.on_line(self.token, GOOD_LINE)
        self.assertIsNone(self.reader.reading)
        self.assertFalse(self.reader.is_active)


class TestSubprocess(unittest.TestCase):

    def test_reads_lines_from_process(self):
        script = (
            "import sys, time\n"
            "sys.stdout.write('{\"power_volt\\n')\n"
            f"sys.stdout.write({GOOD_LINE!r})\n"
            "sys.stdout.flush()\n"
            "time.sleep(30)\n"
        )
        reader = TelemetryReader(command=[sys.executable, "-c", script])
        process = reader.activate()
        self.addCleanup(reader.deactivate)
        self.assertTrue(wait_for(lambda: reader.reading is not None))
        self.assertEqual(reader.reading.capacitor_voltage, 8.5)

        reader.deactivate()
        self.assertIsNotNone(process.poll())
        self.assertFalse(reader.is_active)

    def test_launch_failure_raises(self):
        reader = TelemetryReader(command=["/nonexistent/wp360-telemetry"])
        with self.assertRaises(ConnectionError):
            reader.activate()
        self.assertFalse(reader.is_active)
        reader.deactivate()

    def test_activate_is_idempotent(self):
        reader = TelemetryReader(command=SLEEPER)
        first = reader.activate()
        second = reader.activate()
        self.addCleanup(reader.deactivate)
        self.assertIsNotNone(first.poll())
        self.assertIsNone(second.poll())

    def test_deactivate_twice(self):
        reader = TelemetryReader(command=SLEEPER)
        process = reader.activate()
        reader.deactivate()
        reader.deactivate()
        self.assertIsNotNone(process.poll())

    def test_process_exit_marks_nothing_applied(self):
        reader = TelemetryReader(command=[sys.executable, "-c", "pass"])
        process = reader.activate()
        self.addCleanup(reader.deactivate)
        process.wait(timeout=5)
        self.assertIsNone(reader.reading)

    def test_unexpected_exit_marks_inactive(self):
        exits = []
        script = f"import sys; sys.stdout.write({GOOD_LINE!r}); sys.exit(3)"
        reader = TelemetryReader(command=[sys.executable, "-c", script])
        reader.set_exit_callback(exits.append)
        self.addCleanup(reader.deactivate)
        with self.assertLogs("wp360_ups.core.telemetry", level="WARNING") as logs:
            reader.activate()
            self.assertTrue(wait_for(lambda: exits))
        self.assertFalse(reader.is_active)
        self.assertIsNone(reader.reading)
        self.assertEqual(exits, [3])
        self.assertIn("exited with code 3", logs.output[-1])

    def test_deactivate_does_not_report_exit(self):
        exits = []
        reader = TelemetryReader(command=SLEEPER)
        reader.set_exit_callback(exits.append)
        reader.activate()
        reader.deactivate()
        time.sleep(0.1)
        self.assertEqual(exits, [])


class TestShellScript(unittest.TestCase):

    def setUp(self):
        self.pmuc = MockPMUCDir()
        self.addCleanup(self.pmuc.cleanup)

    def test_script_reads_each_attribute(self):
        script = build_telemetry_script(self.pmuc.path, interval=1)
        for name in ("power_voltage", "capacitor_voltage",
                     "switching_voltage", "pmuc_temperature"):
            self.assertIn(f"cat {self.pmuc.path / name}", script)
        self.assertIn("sleep 1", script)

    @unittest.skipUnless(sys.platform.startswith("linux"), "needs a POSIX shell")
    def test_default_command_against_attribute_files(self):
        reader = TelemetryReader(self.pmuc.path)
        process = reader.activate()
        self.addCleanup(reader.deactivate)
        self.assertTrue(wait_for(lambda: reader.reading is not None))
        self.assertEqual(reader.reading, TelemetryReading(12.0, 8.5, 5.0, 25.0))

        reader.deactivate()
        self.assertIsNotNone(process.poll())


if __name__ == "__main__":
    unittest.main()
