# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from shared.sequencer import ExperienceSequencer
from shared.ticker import UnlockTicker
from shared.types import RecipientConfig

BIRTHDAY = datetime(2030, 6, 1, tzinfo=timezone.utc)


class UnlockTickerTest(unittest.TestCase):
    def setUp(self):
        self.now = BIRTHDAY - timedelta(seconds=1)
        config = RecipientConfig(
            id="r1",
            slug="sam",
            recipient_name="Sam",
            sender_name="Kim",
            birthday_date=BIRTHDAY,
        )
        self.sequencer = ExperienceSequencer(config, clock=lambda: self.now)
        self.changes = []
        timer_patcher = patch("shared.ticker.Timer")
        self.timer_cls = timer_patcher.start()
        self.addCleanup(timer_patcher.stop)
        self.ticker = UnlockTicker(self.sequencer, on_change=self.changes.append)

    def test_start_ticks_and_schedules(self):
        self.ticker.start()

        self.assertTrue(self.ticker.running)
        self.timer_cls.assert_called_once_with(1.0, self.ticker.tick)
        self.timer_cls.return_value.start.assert_called_once()
        self.assertEqual(self.changes, [])

    def test_tick_reports_unlock_once(self):
        self.ticker.start()

        self.now = BIRTHDAY
        self.ticker.tick()
        self.ticker.tick()

        self.assertEqual(self.changes, [True])
        self.assertFalse(self.sequencer.is_locked)

    def test_stop_cancels_pending_timer(self):
        self.ticker.start()
        self.ticker.stop()

        self.assertFalse(self.ticker.running)
        self.timer_cls.return_value.cancel.assert_called_once()

        self.timer_cls.reset_mock()
        self.ticker.tick()
        self.timer_cls.assert_not_called()

    def test_failing_callback_keeps_ticking(self):
        def explode(unlocked):
            raise RuntimeError("listener failed")

        self.ticker.on_change = explode
        self.ticker.start()
        self.now = BIRTHDAY

        with self.assertLogs("shared.ticker", level="ERROR"):
            self.ticker.tick()

        self.assertTrue(self.sequencer.unlocked)
        self.assertEqual(self.timer_cls.call_count, 2)

    def test_start_twice_is_a_no_op(self):
        self.ticker.start()
        self.ticker.start()
        self.assertEqual(self.timer_cls.call_count, 1)


if __name__ == "__main__":
    unittest.main()
