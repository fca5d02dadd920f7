"""Room ORM model: the aggregate root every other table hangs off."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, Integer, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from flashvote.database import Base


class RoomStatus(str, enum.Enum):
    draft = "draft"
    published = "published"
    live = "live"
    ended = "ended"


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(100), nullable=True)
    purpose_text = Column(Text, nullable=True)
    status = Column(SAEnum(RoomStatus, name="room_status"), nullable=False, default=RoomStatus.draft)
    host_token_hash = Column(String(64), nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    current_question_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    questions = relationship(
        "Question", back_populates="room", cascade="all, delete-orphan", passive_deletes=True,
    )
    participants = relationship("Participant", cascade="all, delete-orphan", passive_deletes=True)
    audit_logs = relationship("AuditLog", cascade="all, delete-orphan", passive_deletes=True)
