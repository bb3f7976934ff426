"""
Database abstraction for recipient configs, with SQLAlchemy and in-memory
implementations.

Rows are plain dicts keyed by snake_case column name. They still carry
`password_hash`; callers strip it through the shared config parser before
anything leaves the service.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import JSON, Boolean, Column, Float, String, create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.errors import BackendUnavailable

logger = logging.getLogger(__name__)

# Columns an admin may change through a partial update.
CONTENT_FIELDS = (
    "recipient_name",
    "sender_name",
    "birthday_date",
    "timezone",
    "profile_image_url",
    "voice_message_url",
    "background_music_url",
    "instagram_link",
    "countdown_title",
    "countdown_subtitle",
    "star_page_message",
    "cake_page_title",
    "cake_page_subtitle",
    "letter_title",
    "letter_paragraphs",
    "letter_signature",
    "final_reveal_message",
    "memories",
    "quiz_questions",
    "show_memory_timeline",
    "show_voice_message",
    "show_wish_vault",
    "show_final_reveal",
    "show_quiz",
)

SUMMARY_FIELDS = ("id", "slug", "recipient_name", "birthday_date", "created_at")


class SlugTakenError(Exception):
    """Raised when a new recipient's slug is already in use."""


class DbClient(Protocol):
    """Interface for recipient persistence."""

    def create_recipient(self, row: dict) -> dict:
        ...

    def get_recipient(self, recipient_id: str) -> Optional[dict]:
        ...

    def get_recipient_by_slug(self, slug: str) -> Optional[dict]:
        ...

    def slug_exists(self, slug: str) -> bool:
        ...

    def list_recipients(self, limit: int = 500) -> list[dict]:
        ...

    def update_recipient(self, recipient_id: str, fields: dict) -> Optional[dict]:
        ...

    def set_password_hash(self, recipient_id: str, password_hash: str) -> bool:
        ...

    def delete_recipient(self, recipient_id: str) -> bool:
        ...

    def get_site_config(self, config_key: str) -> Optional[dict]:
        ...

    def save_site_config(self, config_key: str, fields: dict) -> dict:
        ...


def _content_only(fields: dict) -> dict:
    return {key: value for key, value in fields.items() if key in CONTENT_FIELDS}


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.recipients: Dict[str, dict] = {}
        self.site_configs: Dict[str, dict] = {}

    def create_recipient(self, row: dict) -> dict:
        if self.slug_exists(row["slug"]):
            raise SlugTakenError(row["slug"])
        now = time.time()
        record = copy.deepcopy(row)
        record.setdefault("created_at", now)
        record.setdefault("updated_at", now)
        self.recipients[record["id"]] = record
        return copy.deepcopy(record)

    def get_recipient(self, recipient_id: str) -> Optional[dict]:
        row = self.recipients.get(recipient_id)
        return copy.deepcopy(row) if row else None

    def get_recipient_by_slug(self, slug: str) -> Optional[dict]:
        for row in self.recipients.values():
            if row["slug"] == slug:
                return copy.deepcopy(row)
        return None

    def slug_exists(self, slug: str) -> bool:
        return any(row["slug"] == slug for row in self.recipients.values())

    def list_recipients(self, limit: int = 500) -> list[dict]:
        rows = sorted(
            self.recipients.values(),
            key=lambda row: row.get("created_at") or 0,
            reverse=True,
        )
        return [
            {key: row.get(key) for key in SUMMARY_FIELDS} for row in rows[:limit]
        ]

    def update_recipient(self, recipient_id: str, fields: dict) -> Optional[dict]:
        row = self.recipients.get(recipient_id)
        if not row:
            return None
        row.update(copy.deepcopy(_content_only(fields)))
        row["updated_at"] = time.time()
        return copy.deepcopy(row)

    def set_password_hash(self, recipient_id: str, password_hash: str) -> bool:
        row = self.recipients.get(recipient_id)
        if not row:
            return False
        row["password_hash"] = password_hash
        row["updated_at"] = time.time()
        return True

    def delete_recipient(self, recipient_id: str) -> bool:
        return self.recipients.pop(recipient_id, None) is not None

    def get_site_config(self, config_key: str) -> Optional[dict]:
        row = self.site_configs.get(config_key)
        return copy.deepcopy(row) if row else None

    def save_site_config(self, config_key: str, fields: dict) -> dict:
        now = time.time()
        row = self.site_configs.setdefault(
            config_key, {"id": config_key, "config_key": config_key, "created_at": now}
        )
        row.update(copy.deepcopy(_content_only(fields)))
        row["updated_at"] = now
        return copy.deepcopy(row)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Driver and connection failures surface as BackendUnavailable.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _run(self, description: str, fn):
        try:
            with self.Session() as session:
                return fn(session)
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.exception("Database error while trying to %s", description)
            raise BackendUnavailable() from e

    def create_recipient(self, row: dict) -> dict:
        now = time.time()
        values = dict(row)
        values.setdefault("created_at", now)
        values.setdefault("updated_at", now)

        def create(session: Session) -> dict:
            recipient = RecipientRow(**values)
            session.add(recipient)
            session.commit()
            return recipient.as_dict()

        try:
            return self._run("create recipient", create)
        except IntegrityError as e:
            raise SlugTakenError(row["slug"]) from e

    def get_recipient(self, recipient_id: str) -> Optional[dict]:
        def get(session: Session) -> Optional[dict]:
            row = session.get(RecipientRow, recipient_id)
            return row.as_dict() if row else None

        return self._run("get recipient", get)

    def get_recipient_by_slug(self, slug: str) -> Optional[dict]:
        def get(session: Session) -> Optional[dict]:
            stmt = select(RecipientRow).where(RecipientRow.slug == slug).limit(1)
            row = session.execute(stmt).scalar_one_or_none()
            return row.as_dict() if row else None

        return self._run("get recipient by slug", get)

    def slug_exists(self, slug: str) -> bool:
        def exists(session: Session) -> bool:
            stmt = select(RecipientRow.id).where(RecipientRow.slug == slug).limit(1)
            return session.execute(stmt).first() is not None

        return self._run("check slug", exists)

    def list_recipients(self, limit: int = 500) -> list[dict]:
        def list_rows(session: Session) -> list[dict]:
            stmt = (
                select(RecipientRow)
                .order_by(RecipientRow.created_at.desc())
                .limit(limit)
            )
            rows = session.execute(stmt).scalars().all()
            return [
                {key: getattr(row, key) for key in SUMMARY_FIELDS} for row in rows
            ]

        return self._run("list recipients", list_rows)

    def update_recipient(self, recipient_id: str, fields: dict) -> Optional[dict]:
        def update(session: Session) -> Optional[dict]:
            row = session.get(RecipientRow, recipient_id)
            if not row:
                return None
            for key, value in _content_only(fields).items():
                setattr(row, key, value)
            row.updated_at = time.time()
            session.commit()
            return row.as_dict()

        return self._run("update recipient", update)

    def set_password_hash(self, recipient_id: str, password_hash: str) -> bool:
        def update(session: Session) -> bool:
            row = session.get(RecipientRow, recipient_id)
            if not row:
                return False
            row.password_hash = password_hash
            row.updated_at = time.time()
            session.commit()
            return True

        return self._run("set password", update)

    def delete_recipient(self, recipient_id: str) -> bool:
        def delete(session: Session) -> bool:
            row = session.get(RecipientRow, recipient_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

        return self._run("delete recipient", delete)

    def get_site_config(self, config_key: str) -> Optional[dict]:
        def get(session: Session) -> Optional[dict]:
            row = session.get(SiteConfigRow, config_key)
            return row.as_dict() if row else None

        return self._run("get site config", get)

    def save_site_config(self, config_key: str, fields: dict) -> dict:
        def save(session: Session) -> dict:
            now = time.time()
            row = session.get(SiteConfigRow, config_key)
            if not row:
                row = SiteConfigRow(config_key=config_key, created_at=now)
                session.add(row)
            for key, value in _content_only(fields).items():
                setattr(row, key, value)
            row.updated_at = now
            session.commit()
            return row.as_dict()

        return self._run("save site config", save)


Base = declarative_base()


class ContentColumns:
    """Experience content shared by recipients and the default site config."""

    recipient_name = Column(String, nullable=False, default="")
    sender_name = Column(String, nullable=False, default="")
    birthday_date = Column(String, nullable=True)
    timezone = Column(String, nullable=False, default="UTC")
    profile_image_url = Column(String, nullable=True)
    voice_message_url = Column(String, nullable=True)
    background_music_url = Column(String, nullable=True)
    instagram_link = Column(String, nullable=True)
    countdown_title = Column(String, nullable=False, default="")
    countdown_subtitle = Column(String, nullable=False, default="")
    star_page_message = Column(String, nullable=False, default="")
    cake_page_title = Column(String, nullable=False, default="")
    cake_page_subtitle = Column(String, nullable=False, default="")
    letter_title = Column(String, nullable=False, default="")
    letter_paragraphs = Column(JSON, nullable=False, default=lambda: [])
    letter_signature = Column(String, nullable=False, default="")
    final_reveal_message = Column(String, nullable=False, default="")
    memories = Column(JSON, nullable=False, default=lambda: [])
    quiz_questions = Column(JSON, nullable=False, default=lambda: [])
    show_memory_timeline = Column(Boolean, nullable=False, default=True)
    show_voice_message = Column(Boolean, nullable=False, default=True)
    show_wish_vault = Column(Boolean, nullable=False, default=True)
    show_final_reveal = Column(Boolean, nullable=False, default=True)
    show_quiz = Column(Boolean, nullable=False, default=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)

    def as_dict(self) -> dict[str, Any]:
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }


class RecipientRow(ContentColumns, Base):
    __tablename__ = "birthday_recipients"

    id = Column(String, primary_key=True)
    slug = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    created_by = Column(String, nullable=True)


class SiteConfigRow(ContentColumns, Base):
    __tablename__ = "site_config"

    config_key = Column(String, primary_key=True)

    def as_dict(self) -> dict[str, Any]:
        row = super().as_dict()
        row["id"] = self.config_key
        return row
