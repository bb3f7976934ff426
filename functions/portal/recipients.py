"""
Recipient management used by the admin routes and the CLI.
"""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

from portal.db import CONTENT_FIELDS, DbClient, SlugTakenError
from portal.realtime import ChangeFeed, delete_event, update_event
from portal.schemas import RecipientUpdate
from portal.security import DEFAULT_METHOD, hash_password
from portal.storage import StorageClient
from shared.errors import ValidationError
from shared.recipient_config import TEXT_DEFAULTS, parse_recipient_config
from shared.types import RecipientConfig

logger = logging.getLogger(__name__)

DEFAULT_SITE_CONFIG_KEY = "default"
SLUG_SUFFIX_BYTES = 3
SLUG_ATTEMPTS = 5
MAX_SLUG_BASE_LENGTH = 40


class RecipientNotFound(LookupError):
    pass


def slugify(name: str) -> str:
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return base[:MAX_SLUG_BASE_LENGTH].rstrip("-") or "birthday"


def generate_slug(db: DbClient, name: str) -> str:
    base = slugify(name)
    for _ in range(SLUG_ATTEMPTS):
        candidate = f"{base}-{secrets.token_hex(SLUG_SUFFIX_BYTES)}"
        if not db.slug_exists(candidate):
            return candidate
    raise SlugTakenError(base)


def media_prefix(recipient_id: str) -> str:
    return f"recipients/{recipient_id}/"


def default_content(recipient_name: str, now: datetime | None = None) -> dict:
    content = dict(TEXT_DEFAULTS)
    content.update(
        {
            "recipient_name": recipient_name or TEXT_DEFAULTS["recipient_name"],
            "birthday_date": (now or datetime.now(timezone.utc)).isoformat(),
            "letter_paragraphs": [],
            "memories": [],
            "quiz_questions": [],
            "show_memory_timeline": True,
            "show_voice_message": True,
            "show_wish_vault": True,
            "show_final_reveal": True,
            "show_quiz": True,
        }
    )
    return content


def assign_item_ids(items: list[dict]) -> list[dict]:
    """Give every list entry a unique id, minting new ones where missing."""
    seen: set[str] = set()
    for item in items:
        item_id = item.get("id")
        if not item_id or item_id in seen:
            item["id"] = uuid.uuid4().hex
        seen.add(item["id"])
    return items


def update_fields(update: RecipientUpdate) -> dict:
    """Column values for a partial update, ready to store."""
    fields = update.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    if update.birthday_date is not None:
        birthday = update.birthday_date
        if birthday.tzinfo is None:
            birthday = birthday.replace(tzinfo=timezone.utc)
        fields["birthday_date"] = birthday.isoformat()
    for key in ("letter_paragraphs", "memories"):
        if key in fields:
            fields[key] = assign_item_ids(fields[key])
    return {key: value for key, value in fields.items() if key in CONTENT_FIELDS}


def create_recipient(
    db: DbClient,
    recipient_name: str,
    password: str,
    *,
    hash_method: str = DEFAULT_METHOD,
    created_by: Optional[str] = None,
) -> RecipientConfig:
    recipient_name = (recipient_name or "").strip()
    password = (password or "").strip()
    if not recipient_name or not password:
        raise ValidationError("Recipient name and password are required")

    row = default_content(recipient_name)
    row.update(
        {
            "id": uuid.uuid4().hex,
            "slug": generate_slug(db, recipient_name),
            "password_hash": hash_password(password, method=hash_method),
            "created_by": created_by,
        }
    )
    saved = db.create_recipient(row)
    logger.info("Created recipient %s (%s)", saved["id"], saved["slug"])
    return parse_recipient_config(saved)


def get_recipient(db: DbClient, recipient_id: str) -> RecipientConfig:
    row = db.get_recipient(recipient_id)
    if row is None:
        raise RecipientNotFound(recipient_id)
    return parse_recipient_config(row)


def update_recipient(
    db: DbClient, feed: ChangeFeed, recipient_id: str, update: RecipientUpdate
) -> RecipientConfig:
    """Merge `update` into the stored row; the last save wins."""
    row = db.update_recipient(recipient_id, update_fields(update))
    if row is None:
        raise RecipientNotFound(recipient_id)
    feed.publish(recipient_id, update_event(row))
    return parse_recipient_config(row)


def change_password(
    db: DbClient,
    recipient_id: str | None,
    new_password: str | None,
    *,
    min_length: int = 4,
    hash_method: str = DEFAULT_METHOD,
) -> None:
    new_password = (new_password or "").strip()
    if not recipient_id or not new_password:
        raise ValidationError("Missing recipientId or newPassword")
    if len(new_password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")
    if not db.set_password_hash(recipient_id, hash_password(new_password, method=hash_method)):
        raise RecipientNotFound(recipient_id)
    logger.info("Password changed for recipient %s", recipient_id)


def delete_recipient(
    db: DbClient, feed: ChangeFeed, storage: StorageClient, recipient_id: str
) -> None:
    if not db.delete_recipient(recipient_id):
        raise RecipientNotFound(recipient_id)
    feed.publish(recipient_id, delete_event(recipient_id))
    removed = storage.delete_prefix(media_prefix(recipient_id))
    logger.info("Deleted recipient %s and %d media objects", recipient_id, removed)


def get_site_config(db: DbClient, config_key: str = DEFAULT_SITE_CONFIG_KEY) -> RecipientConfig:
    """Config of the default (ungated) experience, created on first read."""
    row = db.get_site_config(config_key)
    if row is None:
        row = db.save_site_config(config_key, default_content(""))
    return parse_recipient_config(row)


def update_site_config(
    db: DbClient,
    feed: ChangeFeed,
    update: RecipientUpdate,
    config_key: str = DEFAULT_SITE_CONFIG_KEY,
) -> RecipientConfig:
    if db.get_site_config(config_key) is None:
        db.save_site_config(config_key, default_content(""))
    row = db.save_site_config(config_key, update_fields(update))
    feed.publish(config_key, update_event(row))
    return parse_recipient_config(row)
