"""Question ORM model."""
import uuid
import enum
from sqlalchemy import (
    Column, String, DateTime, Integer, ForeignKey, Index, UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from flashvote.database import Base


class QuestionType(str, enum.Enum):
    single_choice = "single_choice"
    multi_choice = "multi_choice"
    text = "text"

    @property
    def has_options(self) -> bool:
        return self is not QuestionType.text


class QuestionStatus(str, enum.Enum):
    not_open = "not_open"
    accepting = "accepting"
    closed = "closed"
    showing_results = "showing_results"


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("room_id", "order", name="questions_room_order_unique"),
        Index("questions_room_idx", "room_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    order = Column(Integer, nullable=False)
    type = Column(SAEnum(QuestionType, name="question_type"), nullable=False)
    prompt = Column(String(200), nullable=False)
    status = Column(
        SAEnum(QuestionStatus, name="question_status"), nullable=False, default=QuestionStatus.not_open,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    room = relationship("Room", back_populates="questions")
    options = relationship(
        "Option",
        back_populates="question",
        order_by="Option.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
