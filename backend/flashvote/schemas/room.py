"""Pydantic schemas for Rooms."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import Field, model_validator

from flashvote.models.room import RoomStatus
from flashvote.schemas.base import CamelModel
from flashvote.schemas.question import QuestionOut


class RoomCreate(CamelModel):
    title: Optional[str] = Field(None, max_length=100)
    purpose_text: Optional[str] = None


class RoomUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=100)
    purpose_text: Optional[str] = None

    @model_validator(mode="after")
    def _require_a_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one of title or purposeText must be supplied")
        return self


class RoomRef(CamelModel):
    id: str
    status: RoomStatus


class RoomCreated(CamelModel):
    """Returned once on creation, the only place the plaintext token ever appears."""

    room: RoomRef
    host_token: str
    host_management_url: str
    public_url: str


class RoomOut(CamelModel):
    id: str
    title: Optional[str] = None
    purpose_text: Optional[str] = None
    status: RoomStatus
    published_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    current_question_index: int
    created_at: datetime
    updated_at: datetime


class RoomStatusOut(CamelModel):
    id: str
    status: RoomStatus
    published_at: Optional[datetime] = None


class GuestCount(CamelModel):
    active: int
    total: int


class HostRoomView(CamelModel):
    room: RoomOut
    questions: list[QuestionOut] = []
    guest_count: GuestCount


class PublicRoomOut(CamelModel):
    id: str
    title: Optional[str] = None
    purpose_text: Optional[str] = None
    status: RoomStatus
    current_question_index: int


class PublicRoomView(CamelModel):
    room: PublicRoomOut
    questions: list[QuestionOut] = []
