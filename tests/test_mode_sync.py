"""Tests for the program_version mode/flag synchronizer."""

import unittest

from tests.mock_pmuc import ManualWatchFactory, MockPMUCDir, RecordingConnection
from wp360_ups.core.mode_sync import ModeSynchronizer
from wp360_ups.core.ups_state import ModeState, UPSMode


class TestModeSync(unittest.TestCase):

    def setUp(self):
        self.pmuc = MockPMUCDir()
        self.addCleanup(self.pmuc.cleanup)
        self.conn = RecordingConnection(self.pmuc.path)
        self.watches = ManualWatchFactory()
        self.sync = ModeSynchronizer(self.conn, self.watches)
        self.sync.activate()
        self.watch = self.watches.latest("program_version")

    def test_default_state(self):
        sync = ModeSynchronizer(self.conn, self.watches)
        self.assertEqual(sync.state, ModeState(UPSMode.BYPASS, False))

    def test_decodes_notification(self):
        self.watch.notify("17\n")
        self.assertEqual(self.sync.state, ModeState(UPSMode.SUPERCAPACITOR, True))

    def test_keeps_last_raw_code(self):
        self.watch.notify("17")
        self.watch.notify("30")
        self.assertEqual(self.sync.state.code, 30)
        self.assertEqual(self.sync.state, ModeState(UPSMode.SUPERCAPACITOR, False))
        self.watch.notify("48")
        self.assertEqual(self.sync.state.code, 30)

    def test_select_mode_keeps_forced_flag(self):
        self.watch.notify(str(0x11))
        ok, _ = self.sync.select_mode(32)
        self.assertTrue(ok)
        self.assertEqual(self.conn.writes, [("program_version", str(0x21))])

    def test_select_mode_without_forced(self):
        self.watch.notify("32")
        self.sync.select_mode(UPSMode.BYPASS)
        self.assertEqual(self.conn.writes, [("program_version", "0")])

    def test_select_unknown_mode(self):
        ok, msg = self.sync.select_mode(48)
        self.assertFalse(ok)
        self.assertIn("48", msg)
        self.assertEqual(self.conn.writes, [])

    def test_set_forced_uses_last_decoded_mode(self):
        self.watch.notify("32")
        self.sync.set_forced(True)
        self.assertEqual(self.conn.writes, [("program_version", "33")])

    def test_clear_forced(self):
        self.watch.notify("17")
        self.sync.set_forced(False)
        self.assertEqual(self.conn.writes, [("program_version", "16")])

    def test_racing_writes_use_decoded_state(self):
        """Without an echo in between, each write starts from the last reading."""
        self.watch.notify("16")
        self.sync.select_mode(32)
        self.sync.set_forced(True)
        self.assertEqual(self.conn.writes, [("program_version", "32"),
                                            ("program_version", "17")])

    def test_no_optimistic_update(self):
        self.watch.notify("16")
        self.sync.select_mode(32)
        self.assertEqual(self.sync.state.mode, UPSMode.SUPERCAPACITOR)

    def test_invalid_readings_keep_state(self):
        self.watch.notify("33")
        for text in ("", "x", str(0x31), "240"):
            with self.subTest(text=text):
                self.watch.notify(text)
                self.assertEqual(self.sync.state, ModeState(UPSMode.BATTERY, True))

    def test_late_notification_discarded(self):
        self.sync.deactivate()
        self.watch.notify("33")
        self.assertEqual(self.sync.state, ModeState())


if __name__ == "__main__":
    unittest.main()
