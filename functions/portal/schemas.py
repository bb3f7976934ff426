"""
Pydantic schemas for the portal API. JSON on the wire is camelCase.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from shared.recipient_config import MAX_QUIZ_OPTIONS, MIN_QUIZ_OPTIONS
from shared.types import MediaType, RecipientConfig

MAX_TEXT_LENGTH = 5000


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VerifyPasswordRequest(CamelModel):
    slug: Optional[str] = None
    password: Optional[str] = None


class UpdatePasswordRequest(CamelModel):
    recipient_id: Optional[str] = None
    new_password: Optional[str] = None


class PasswordUpdateResponse(CamelModel):
    success: bool
    error: Optional[str] = None


class AdminSessionRequest(CamelModel):
    code: str = Field(..., max_length=256)


class AdminSessionResponse(CamelModel):
    token: str
    expires_at: float


class LetterParagraphModel(CamelModel):
    id: Optional[str] = None
    text: str = Field(default="", max_length=MAX_TEXT_LENGTH)


class MemoryItemModel(CamelModel):
    id: Optional[str] = None
    title: str = Field(default="", max_length=500)
    description: str = Field(default="", max_length=MAX_TEXT_LENGTH)
    emoji: str = Field(default="", max_length=32)
    media_type: MediaType = MediaType.NONE
    media_url: str = ""


class QuizQuestionModel(CamelModel):
    question: str = Field(..., max_length=1000)
    options: list[str] = Field(
        ..., min_length=MIN_QUIZ_OPTIONS, max_length=MAX_QUIZ_OPTIONS
    )
    correct_index: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _correct_index_in_range(self) -> "QuizQuestionModel":
        if self.correct_index >= len(self.options):
            raise ValueError("correctIndex must point at one of the options")
        return self


class RecipientUpdate(CamelModel):
    """Partial update of a recipient's content. Unset fields are untouched."""

    model_config = ConfigDict(extra="forbid")

    recipient_name: Optional[str] = Field(default=None, max_length=200)
    sender_name: Optional[str] = Field(default=None, max_length=200)
    birthday_date: Optional[datetime] = None
    timezone: Optional[str] = Field(default=None, max_length=64)
    profile_image_url: Optional[str] = None
    voice_message_url: Optional[str] = None
    background_music_url: Optional[str] = None
    instagram_link: Optional[str] = None
    countdown_title: Optional[str] = Field(default=None, max_length=500)
    countdown_subtitle: Optional[str] = Field(default=None, max_length=MAX_TEXT_LENGTH)
    star_page_message: Optional[str] = Field(default=None, max_length=MAX_TEXT_LENGTH)
    cake_page_title: Optional[str] = Field(default=None, max_length=500)
    cake_page_subtitle: Optional[str] = Field(default=None, max_length=MAX_TEXT_LENGTH)
    letter_title: Optional[str] = Field(default=None, max_length=500)
    letter_paragraphs: Optional[list[LetterParagraphModel]] = None
    letter_signature: Optional[str] = Field(default=None, max_length=500)
    final_reveal_message: Optional[str] = Field(default=None, max_length=MAX_TEXT_LENGTH)
    memories: Optional[list[MemoryItemModel]] = None
    quiz_questions: Optional[list[QuizQuestionModel]] = None
    show_memory_timeline: Optional[bool] = None
    show_voice_message: Optional[bool] = None
    show_wish_vault: Optional[bool] = None
    show_final_reveal: Optional[bool] = None
    show_quiz: Optional[bool] = None


class CreateRecipientRequest(CamelModel):
    recipient_name: str = Field(..., max_length=200)
    password: str = Field(..., max_length=256)


class LetterParagraphOut(CamelModel):
    id: str
    text: str


class MemoryItemOut(CamelModel):
    id: str
    title: str
    description: str
    emoji: str
    media_type: MediaType
    media_url: str


class QuizQuestionOut(CamelModel):
    question: str
    options: list[str]
    correct_index: int


class RecipientConfigResponse(CamelModel):
    id: str
    slug: str
    recipient_name: str
    sender_name: str
    birthday_date: datetime
    timezone: str
    countdown_title: str
    countdown_subtitle: str
    star_page_message: str
    cake_page_title: str
    cake_page_subtitle: str
    letter_title: str
    letter_paragraphs: list[LetterParagraphOut]
    letter_signature: str
    final_reveal_message: str
    memories: list[MemoryItemOut]
    quiz_questions: list[QuizQuestionOut]
    show_memory_timeline: bool
    show_voice_message: bool
    show_wish_vault: bool
    show_final_reveal: bool
    show_quiz: bool
    voice_message_url: str
    background_music_url: str
    instagram_link: str
    profile_image_url: str
    created_at: Optional[float] = None
    updated_at: Optional[float] = None

    @classmethod
    def from_config(cls, config: RecipientConfig) -> "RecipientConfigResponse":
        return cls.model_validate(asdict(config))


class VerifyPasswordResponse(CamelModel):
    success: bool
    recipient: RecipientConfigResponse


class RecipientResponse(CamelModel):
    success: bool = True
    recipient: RecipientConfigResponse


class RecipientSummary(CamelModel):
    id: str
    slug: str
    recipient_name: str
    birthday_date: Optional[str] = None
    created_at: Optional[float] = None


class ListRecipientsResponse(CamelModel):
    recipients: list[RecipientSummary]


class DeleteResponse(CamelModel):
    success: bool


class SignUrlResponse(CamelModel):
    url: str
    path: str
