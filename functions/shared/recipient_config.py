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

"""Boundary parser turning loosely-typed stored rows into RecipientConfig.

Rows come from the database (snake_case) or over the wire (camelCase). Every
field is coerced to its declared type; a malformed field falls back to its
default so one bad value never blocks the whole experience from loading.
"""

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from dacite import Config, from_dict

from shared.errors import ConfigShapeError
from shared.json_utils import convert_keys
from shared.types import MediaType, RecipientConfig

logger = logging.getLogger(__name__)

DEFAULT_RECIPIENT_NAME = "Birthday Star"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_COUNTDOWN_TITLE = "🎉 Birthday Countdown 🎉"
DEFAULT_CAKE_PAGE_TITLE = "🎂 Cake Cutting 🎂"
DEFAULT_LETTER_TITLE = "💌 To My Amazing Friend"

MIN_QUIZ_OPTIONS = 2
MAX_QUIZ_OPTIONS = 6

# field name -> default used when the stored value is empty or malformed
TEXT_DEFAULTS = {
    "recipient_name": DEFAULT_RECIPIENT_NAME,
    "sender_name": "",
    "timezone": DEFAULT_TIMEZONE,
    "countdown_title": DEFAULT_COUNTDOWN_TITLE,
    "countdown_subtitle": "",
    "star_page_message": "",
    "cake_page_title": DEFAULT_CAKE_PAGE_TITLE,
    "cake_page_subtitle": "",
    "letter_title": DEFAULT_LETTER_TITLE,
    "letter_signature": "",
    "final_reveal_message": "",
    "voice_message_url": "",
    "background_music_url": "",
    "instagram_link": "",
    "profile_image_url": "",
}

FLAG_FIELDS = (
    "show_memory_timeline",
    "show_voice_message",
    "show_wish_vault",
    "show_final_reveal",
    "show_quiz",
)


class _Issues:
    """Collects shape problems found while parsing one row."""

    def __init__(self):
        self.items: list[str] = []

    def add(self, field_name: str, value: Any) -> None:
        self.items.append(f"{field_name} ({type(value).__name__})")


def _get_value(data: dict, *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _text(data: dict, key: str, default: str, issues: _Issues) -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        issues.add(key, value)
        return default
    return value or default


def _flag(data: dict, key: str, issues: _Issues) -> bool:
    value = data.get(key)
    if value is None:
        return True
    if not isinstance(value, bool):
        issues.add(key, value)
        return True
    return value


def _list(data: dict, key: str, issues: _Issues) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        issues.add(key, value)
        return []
    return value


def parse_timestamp(value: Any) -> datetime | None:
    """Read an ISO-8601 string, epoch seconds or datetime as an aware instant.

    Naive values are taken to be UTC. Returns None when the value is unusable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _paragraphs(data: dict, issues: _Issues) -> list[dict]:
    paragraphs = []
    for index, item in enumerate(_list(data, "letter_paragraphs", issues)):
        if isinstance(item, str):
            item = {"text": item}
        if not isinstance(item, dict):
            issues.add(f"letter_paragraphs[{index}]", item)
            continue
        text = _get_value(item, "text", "content")
        paragraphs.append(
            {
                "id": str(item.get("id") or f"p{index}"),
                "text": text if isinstance(text, str) else "",
            }
        )
    return paragraphs


def _media_type(item: dict, media_url: str) -> MediaType:
    raw = item.get("media_type")
    if raw is None:
        return MediaType.IMAGE if media_url else MediaType.NONE
    try:
        return MediaType(raw)
    except ValueError:
        return MediaType.NONE


def _memories(data: dict, issues: _Issues) -> list[dict]:
    memories = []
    for index, item in enumerate(_list(data, "memories", issues)):
        if not isinstance(item, dict):
            issues.add(f"memories[{index}]", item)
            continue
        media_url = _get_value(item, "media_url", "image_url") or ""
        if not isinstance(media_url, str):
            media_url = ""
        memories.append(
            {
                "id": str(item.get("id") or f"m{index}"),
                "title": str(item.get("title") or ""),
                "description": str(item.get("description") or ""),
                "emoji": str(item.get("emoji") or ""),
                "media_type": _media_type(item, media_url),
                "media_url": media_url,
            }
        )
    return memories


def _quiz_questions(data: dict, issues: _Issues) -> list[dict]:
    questions = []
    for index, item in enumerate(_list(data, "quiz_questions", issues)):
        label = f"quiz_questions[{index}]"
        if not isinstance(item, dict):
            issues.add(label, item)
            continue
        options = item.get("options")
        correct = _get_value(item, "correct_index", "correct")
        if (
            not isinstance(options, list)
            or not MIN_QUIZ_OPTIONS <= len(options) <= MAX_QUIZ_OPTIONS
            or not isinstance(correct, int)
            or isinstance(correct, bool)
            or not 0 <= correct < len(options)
        ):
            issues.add(label, item)
            continue
        questions.append(
            {
                "question": str(item.get("question") or ""),
                "options": [str(option) for option in options],
                "correct_index": correct,
            }
        )
    return questions


def parse_recipient_config(
    row: dict, *, strict: bool = False, now: datetime | None = None
) -> RecipientConfig:
    """Build a RecipientConfig from a stored row or an API payload.

    With `strict=True` any malformed field raises ConfigShapeError instead of
    being defaulted. Password digests present in `row` are ignored.
    """
    if not isinstance(row, dict):
        raise ConfigShapeError()
    data = convert_keys(row, "camel_to_snake")
    issues = _Issues()

    birthday_date = parse_timestamp(data.get("birthday_date"))
    if birthday_date is None:
        if data.get("birthday_date") is not None:
            issues.add("birthday_date", data.get("birthday_date"))
        birthday_date = now or datetime.now(timezone.utc)

    fields: dict[str, Any] = {
        "id": str(data.get("id") or ""),
        "slug": str(data.get("slug") or ""),
        "birthday_date": birthday_date,
        "letter_paragraphs": _paragraphs(data, issues),
        "memories": _memories(data, issues),
        "quiz_questions": _quiz_questions(data, issues),
        "created_at": _epoch(data.get("created_at")),
        "updated_at": _epoch(data.get("updated_at")),
    }
    for key, default in TEXT_DEFAULTS.items():
        fields[key] = _text(data, key, default, issues)
    for key in FLAG_FIELDS:
        fields[key] = _flag(data, key, issues)

    if issues.items:
        if strict:
            raise ConfigShapeError(
                "Malformed recipient fields: " + ", ".join(issues.items)
            )
        logger.warning(
            "Defaulted malformed fields for recipient %s: %s",
            fields["slug"] or fields["id"],
            ", ".join(issues.items),
        )

    return from_dict(
        data_class=RecipientConfig,
        data=fields,
        config=Config(cast=[MediaType]),
    )


def _epoch(value: Any) -> float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    parsed = parse_timestamp(value)
    return parsed.timestamp() if parsed else None


def config_to_dict(config: RecipientConfig, *, camel: bool = True) -> dict:
    """JSON-safe dict form of a config, camelCase by default."""
    data = asdict(config)
    data["birthday_date"] = config.birthday_date.isoformat()
    for memory in data["memories"]:
        memory["media_type"] = str(memory["media_type"])
    return convert_keys(data, "snake_to_camel") if camel else data
