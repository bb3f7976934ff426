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

"""Step sequencing for the birthday experience.

Pure derived state over a RecipientConfig and the clock: which steps are
shown, whether the birthday content is unlocked, and where the visitor is.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List

from shared.types import RecipientConfig, StepId

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_unlocked(config: RecipientConfig, now: datetime) -> bool:
    return now >= config.birthday_date


def build_step_sequence(config: RecipientConfig) -> List[StepId]:
    """Ordered steps for a config. Flags only ever remove steps."""
    steps = [StepId.COUNTDOWN, StepId.STAR]
    if config.show_memory_timeline:
        steps.append(StepId.MEMORIES)
    if config.show_quiz and config.quiz_questions:
        steps.append(StepId.QUIZ)
    steps.extend([StepId.CAKE, StepId.LETTER])
    if config.show_final_reveal:
        steps.append(StepId.FINAL)
    return steps


class ExperienceSequencer:
    """Tracks the current step of one visitor's experience."""

    def __init__(self, config: RecipientConfig, clock: Clock = utc_now):
        self._clock = clock
        self.config = config
        self.steps = build_step_sequence(config)
        self.index = 0
        self.unlocked = False
        self.refresh()

    @property
    def current_step(self) -> StepId:
        return self.steps[self.index]

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == len(self.steps) - 1

    @property
    def is_locked(self) -> bool:
        """True while the visitor is held on the countdown."""
        return self.current_step == StepId.COUNTDOWN and not self.unlocked

    @property
    def show_progress(self) -> bool:
        return self.unlocked

    @property
    def background_music_url(self) -> str:
        if not self.unlocked:
            return ""
        return self.config.background_music_url

    def refresh(self, now: datetime | None = None) -> bool:
        """Recompute the unlock state; returns True when it changed."""
        unlocked = is_unlocked(self.config, now or self._clock())
        changed = unlocked != self.unlocked
        self.unlocked = unlocked
        if changed:
            logger.debug("Experience %s unlocked=%s", self.config.slug, unlocked)
        return changed

    def advance(self) -> bool:
        return self.jump_to(self.index + 1)

    def retreat(self) -> bool:
        return self.jump_to(self.index - 1)

    def complete_quiz(self) -> bool:
        if self.current_step != StepId.QUIZ:
            return False
        return self.advance()

    def complete_cake(self) -> bool:
        if self.current_step != StepId.CAKE:
            return False
        return self.advance()

    def jump_to(self, index: int) -> bool:
        """Move to `index`, clamped to the sequence; returns True if moved.

        Leaving the countdown forward is refused until the birthday unlocks.
        """
        target = max(0, min(index, len(self.steps) - 1))
        if target == self.index:
            return False
        if target > self.index and self.is_locked:
            return False
        self.index = target
        return True

    def jump_to_step(self, step: StepId) -> bool:
        if step not in self.steps:
            return False
        return self.jump_to(self.steps.index(step))

    def update_config(self, config: RecipientConfig) -> None:
        """Swap in a new config, keeping the index within the new sequence."""
        self.config = config
        self.steps = build_step_sequence(config)
        if self.index >= len(self.steps):
            self.index = len(self.steps) - 1
        self.refresh()
