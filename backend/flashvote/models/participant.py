"""Participant ORM model: a guest identity scoped to one room."""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func
from flashvote.database import Base, utcnow


class Participant(Base):
    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint("room_id", "participant_id", name="participants_room_participant_unique"),
        Index("participants_room_idx", "room_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(String(36), nullable=False)  # supplied by the guest client
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_seen_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
