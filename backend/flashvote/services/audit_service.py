"""Audit recorder. Appends entries inside the caller's transaction."""
from typing import Any, Optional

from sqlalchemy.orm import Session

from flashvote.models.audit_log import AuditActor, AuditLog


def record(
    db: Session,
    room_id: str,
    actor: AuditActor,
    action: str,
    meta: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """Stage one audit entry; it is persisted by the caller's commit, atomically with the mutation."""
    entry = AuditLog(room_id=room_id, actor=actor, action=action, meta=meta)
    db.add(entry)
    return entry


def list_entries(db: Session, room_id: str) -> list[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.room_id == room_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id)
        .all()
    )
