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

import logging
from threading import Lock, Timer
from typing import Callable, Optional

from shared.sequencer import ExperienceSequencer

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 1.0


class UnlockTicker:
    """Re-checks the unlock state on a fixed interval while running.

    The first check happens synchronously in `start()`; `stop()` cancels the
    pending timer and no further ticks fire after it returns.
    """

    def __init__(
        self,
        sequencer: ExperienceSequencer,
        interval: float = DEFAULT_TICK_SECONDS,
        on_change: Optional[Callable[[bool], None]] = None,
    ):
        self.sequencer = sequencer
        self.interval = interval
        self.on_change = on_change
        self._timer: Optional[Timer] = None
        self._lock = Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
        self.tick()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def tick(self) -> None:
        try:
            changed = self.sequencer.refresh()
            if changed and self.on_change is not None:
                self.on_change(self.sequencer.unlocked)
        except Exception:
            logger.exception("Unlock check failed")
        finally:
            self._schedule()

    def _schedule(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._timer = Timer(self.interval, self.tick)
            self._timer.daemon = True
            self._timer.start()
