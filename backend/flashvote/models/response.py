"""Response ORM model: one participant's answer to one question."""
import uuid
import enum
from sqlalchemy import (
    Column, String, Text, DateTime, JSON, ForeignKey, Index, UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.sql import func
from flashvote.database import Base


class ResponseType(str, enum.Enum):
    choice = "choice"
    text = "text"


class Response(Base):
    __tablename__ = "responses"
    __table_args__ = (
        UniqueConstraint("participant_id", "question_id", name="responses_participant_question_unique"),
        Index("responses_room_question_idx", "room_id", "question_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(String(36), nullable=False)
    type = Column(SAEnum(ResponseType, name="response_type"), nullable=False)
    choice_option_ids = Column(JSON, nullable=True)  # choice responses only
    text_answer = Column(Text, nullable=True)  # text responses only
    created_at = Column(DateTime(timezone=True), server_default=func.now())
