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

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import List


class MediaType(StrEnum):
    NONE = "none"
    IMAGE = "image"
    VIDEO = "video"


class StepId(StrEnum):
    """Screens of the birthday experience, in presentation order."""

    COUNTDOWN = "countdown"
    STAR = "star"
    MEMORIES = "memories"
    QUIZ = "quiz"
    CAKE = "cake"
    LETTER = "letter"
    FINAL = "final"


@dataclass
class LetterParagraph:
    id: str
    text: str


@dataclass
class MemoryItem:
    id: str
    title: str
    description: str = ""
    emoji: str = ""
    media_type: MediaType = MediaType.NONE
    media_url: str = ""


@dataclass
class QuizQuestion:
    question: str
    options: List[str]
    correct_index: int


@dataclass
class RecipientConfig:
    """A recipient's gated experience, as seen by clients.

    The password digest is deliberately not a field: a RecipientConfig can be
    serialized anywhere without leaking it.
    """

    id: str
    slug: str
    recipient_name: str
    sender_name: str
    birthday_date: datetime
    timezone: str = "UTC"

    countdown_title: str = ""
    countdown_subtitle: str = ""
    star_page_message: str = ""
    cake_page_title: str = ""
    cake_page_subtitle: str = ""
    letter_title: str = ""
    letter_paragraphs: List[LetterParagraph] = field(default_factory=list)
    letter_signature: str = ""
    final_reveal_message: str = ""

    memories: List[MemoryItem] = field(default_factory=list)
    quiz_questions: List[QuizQuestion] = field(default_factory=list)

    show_memory_timeline: bool = True
    show_voice_message: bool = True
    show_wish_vault: bool = True
    show_final_reveal: bool = True
    show_quiz: bool = True

    voice_message_url: str = ""
    background_music_url: str = ""
    instagram_link: str = ""
    profile_image_url: str = ""

    created_at: float | None = None
    updated_at: float | None = None
