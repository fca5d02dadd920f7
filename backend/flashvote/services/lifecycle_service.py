"""Room and question lifecycle.

Responsibilities:
- Room state machine: draft --publish--> published --unpublish--> draft,
  applied as a compare-and-set UPDATE so concurrent transitions cannot both win
- Question ordering: new questions take max(order) + 1; orders are never compacted
- Option replacement: delete-all then reinsert with positional order
- Audit trail: every mutation stages exactly one audit entry (actor "host")
  in the same transaction, so a committed mutation always has its record
"""
import logging
import uuid
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flashvote.context import RequestContext
from flashvote.database import is_unique_violation, utcnow
from flashvote.errors import Conflict, ValidationError
from flashvote.models.audit_log import AuditActor
from flashvote.models.option import Option
from flashvote.models.question import Question, QuestionType
from flashvote.models.room import Room, RoomStatus
from flashvote.services import audit_service
from flashvote.services.token_authority import TokenAuthority

logger = logging.getLogger(__name__)


def _request_id(ctx: Optional[RequestContext]) -> str:
    return ctx.request_id if ctx else "-"


def _commit_or_conflict(db: Session, message: str) -> None:
    """Commit, turning a unique-index violation into a Conflict after rolling back."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_unique_violation(exc):
            raise
        raise Conflict(message)


# ── Rooms ──────────────────────────────────────────────────────────


def create_room(
    db: Session,
    authority: TokenAuthority,
    title: Optional[str] = None,
    purpose_text: Optional[str] = None,
    ctx: Optional[RequestContext] = None,
) -> tuple[Room, str]:
    """Create a draft room. Returns the room and the plaintext host token, which is not stored."""
    issued = authority.issue()
    room = Room(
        title=title,
        purpose_text=purpose_text,
        status=RoomStatus.draft,
        host_token_hash=issued.digest,
    )
    db.add(room)
    db.flush()

    audit_service.record(db, room.id, AuditActor.host, "room.created")
    db.commit()
    db.refresh(room)
    logger.info("Created room %s [%s]", room.id, _request_id(ctx))
    return room, issued.token


def update_room(
    db: Session,
    room: Room,
    changes: dict,
    ctx: Optional[RequestContext] = None,
) -> Room:
    """Apply a partial update of title / purpose_text; unspecified fields keep their value."""
    for field, value in changes.items():
        setattr(room, field, value)
    room.updated_at = utcnow()

    audit_service.record(db, room.id, AuditActor.host, "room.updated", {"fields": sorted(changes)})
    db.commit()
    db.refresh(room)
    logger.info("Updated room %s fields %s [%s]", room.id, sorted(changes), _request_id(ctx))
    return room


def _transition(
    db: Session,
    room: Room,
    expected: RoomStatus,
    target: RoomStatus,
    action: str,
    ctx: Optional[RequestContext],
) -> Room:
    now = utcnow()
    values = {
        Room.status: target,
        Room.published_at: now if target == RoomStatus.published else None,
        Room.updated_at: now,
    }
    # The status predicate is re-checked by the UPDATE itself; a concurrent
    # transition that got there first leaves zero matching rows.
    updated = (
        db.query(Room)
        .filter(Room.id == room.id, Room.status == expected)
        .update(values, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        raise Conflict(
            f"Room must be '{expected.value}' for this transition",
            details={"action": action},
        )

    audit_service.record(db, room.id, AuditActor.host, action)
    db.commit()
    db.refresh(room)
    logger.info("Room %s %s -> %s [%s]", room.id, expected.value, target.value, _request_id(ctx))
    return room


def publish_room(db: Session, room: Room, ctx: Optional[RequestContext] = None) -> Room:
    return _transition(db, room, RoomStatus.draft, RoomStatus.published, "room.published", ctx)


def unpublish_room(db: Session, room: Room, ctx: Optional[RequestContext] = None) -> Room:
    return _transition(db, room, RoomStatus.published, RoomStatus.draft, "room.unpublished", ctx)


def delete_room(db: Session, room: Room, ctx: Optional[RequestContext] = None) -> None:
    """Delete a room and, by cascade, everything it owns, its audit trail included."""
    room_id = room.id
    db.delete(room)
    db.commit()
    logger.info("Deleted room %s [%s]", room_id, _request_id(ctx))


# ── Questions ──────────────────────────────────────────────────────


def _next_question_order(db: Session, room_id: str) -> int:
    current_max = db.query(func.max(Question.order)).filter(Question.room_id == room_id).scalar()
    return (current_max if current_max is not None else -1) + 1


def create_question(
    db: Session,
    room: Room,
    question_type: QuestionType,
    prompt: str,
    options: Optional[list[str]] = None,
    ctx: Optional[RequestContext] = None,
) -> Question:
    """Append a question to the room; the question and its options commit together."""
    if question_type.has_options and not options:
        raise ValidationError.for_field("options", f"{question_type.value} questions require at least one option")
    if not question_type.has_options and options:
        raise ValidationError.for_field("options", "text questions cannot have options")

    question = Question(
        id=str(uuid.uuid4()),
        room_id=room.id,
        order=_next_question_order(db, room.id),
        type=question_type,
        prompt=prompt,
    )
    if question_type.has_options:
        question.options = [Option(label=label, order=position) for position, label in enumerate(options)]
    db.add(question)

    audit_service.record(db, room.id, AuditActor.host, "question.created", {"questionId": question.id})
    _commit_or_conflict(db, "Another question was added concurrently; retry")
    db.refresh(question)
    logger.info(
        "Created %s question %s at order %d in room %s [%s]",
        question_type.value, question.id, question.order, room.id, _request_id(ctx),
    )
    return question


def update_question(
    db: Session,
    room: Room,
    question: Question,
    prompt: Optional[str] = None,
    order: Optional[int] = None,
    options: Optional[list[str]] = None,
    ctx: Optional[RequestContext] = None,
) -> Question:
    """Replace any of prompt, order or the full option list in one transaction."""
    if options is not None and not question.type.has_options:
        raise ValidationError.for_field("options", "text questions cannot have options")

    changed = []
    if options is not None:
        # Destructive replacement: no diffing against the existing options.
        db.query(Option).filter(Option.question_id == question.id).delete(synchronize_session=False)
        db.expire(question, ["options"])
        for position, label in enumerate(options):
            db.add(Option(question_id=question.id, label=label, order=position))
        changed.append("options")
    if prompt is not None:
        question.prompt = prompt
        changed.append("prompt")
    if order is not None:
        question.order = order
        changed.append("order")
    question.updated_at = utcnow()

    audit_service.record(
        db, room.id, AuditActor.host, "question.updated",
        {"questionId": question.id, "fields": changed},
    )
    _commit_or_conflict(db, f"Order {order} is already used by another question in this room")
    db.refresh(question)
    logger.info("Updated question %s fields %s [%s]", question.id, changed, _request_id(ctx))
    return question


def delete_question(
    db: Session,
    room: Room,
    question: Question,
    ctx: Optional[RequestContext] = None,
) -> None:
    """Delete a question; its options and responses go with it. Other orders are left as-is."""
    question_id = question.id
    db.delete(question)
    audit_service.record(db, room.id, AuditActor.host, "question.deleted", {"questionId": question_id})
    db.commit()
    logger.info("Deleted question %s from room %s [%s]", question_id, room.id, _request_id(ctx))
