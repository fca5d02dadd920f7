"""Pydantic schemas for guest participation and results."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from uuid import UUID
from pydantic import Field

from flashvote.models.audit_log import AuditActor
from flashvote.models.question import QuestionType
from flashvote.models.response import ResponseType
from flashvote.schemas.base import CamelModel


class ParticipantJoin(CamelModel):
    participant_id: UUID


class ParticipantOut(CamelModel):
    participant_id: str
    room_id: str
    last_seen_at: datetime


class ResponseCreate(CamelModel):
    participant_id: UUID
    option_ids: Optional[list[str]] = None
    text: Optional[str] = Field(None, max_length=1000)


class ResponseOut(CamelModel):
    id: str
    question_id: str
    participant_id: str
    type: ResponseType
    choice_option_ids: Optional[list[str]] = None
    text_answer: Optional[str] = None
    created_at: datetime


class OptionTally(CamelModel):
    option_id: str
    label: str
    count: int


class QuestionResults(CamelModel):
    question_id: str
    order: int
    type: QuestionType
    prompt: str
    total_responses: int
    options: list[OptionTally] = []
    text_answers: list[str] = []


class RoomResults(CamelModel):
    room_id: str
    questions: list[QuestionResults] = []


class AuditLogOut(CamelModel):
    id: str
    actor: AuditActor
    action: str
    meta: Optional[dict[str, Any]] = None
    created_at: datetime
