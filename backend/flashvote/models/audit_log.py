"""AuditLog ORM model: append-only record of mutations against a room."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.sql import func
from flashvote.database import Base, utcnow


class AuditActor(str, enum.Enum):
    host = "host"
    system = "system"


class AuditLog(Base):
    __tablename__ = "audit_logs"
    __table_args__ = (Index("audit_logs_room_idx", "room_id"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    actor = Column(SAEnum(AuditActor, name="audit_actor"), nullable=False)
    action = Column(String(64), nullable=False)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
