"""Guest-side operations: viewing a published room, joining, responding."""
import logging
import uuid
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flashvote.database import is_unique_violation, utcnow
from flashvote.errors import Conflict, NotFound, ValidationError
from flashvote.models.option import Option
from flashvote.models.participant import Participant
from flashvote.models.question import Question, QuestionType
from flashvote.models.response import Response, ResponseType
from flashvote.models.room import Room, RoomStatus
from flashvote.services.host_view_service import load_questions_with_options

logger = logging.getLogger(__name__)


def get_open_room(db: Session, room_id: str) -> Room:
    """Guests only see rooms that have left draft; a draft room looks like no room at all."""
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room or room.status == RoomStatus.draft:
        raise NotFound("Room not found")
    return room


def get_public_view(db: Session, room: Room) -> dict[str, Any]:
    return {
        "room": {
            "id": room.id,
            "title": room.title,
            "purpose_text": room.purpose_text,
            "status": room.status,
            "current_question_index": room.current_question_index,
        },
        "questions": load_questions_with_options(db, room.id),
    }


def touch_participant(db: Session, room: Room, participant_id: uuid.UUID) -> Participant:
    """Register the participant on first sight, otherwise refresh last_seen_at. Does not commit."""
    pid = str(participant_id)
    participant = (
        db.query(Participant)
        .filter(Participant.room_id == room.id, Participant.participant_id == pid)
        .first()
    )
    if participant:
        participant.last_seen_at = utcnow()
    else:
        participant = Participant(room_id=room.id, participant_id=pid, last_seen_at=utcnow())
        db.add(participant)
    return participant


def join_room(db: Session, room: Room, participant_id: uuid.UUID) -> Participant:
    participant = touch_participant(db, room, participant_id)
    try:
        db.commit()
    except IntegrityError:
        # Two first-time joins raced on the (room, participant) index; the other one won.
        db.rollback()
        participant = touch_participant(db, room, participant_id)
        db.commit()
    db.refresh(participant)
    return participant


def _validate_choice(question: Question, option_ids: Optional[list[str]], valid_ids: set[str]) -> list[str]:
    if not option_ids:
        raise ValidationError.for_field("optionIds", "Choice questions require at least one option id")
    if len(set(option_ids)) != len(option_ids):
        raise ValidationError.for_field("optionIds", "Option ids must not repeat")
    if question.type == QuestionType.single_choice and len(option_ids) != 1:
        raise ValidationError.for_field("optionIds", "Single-choice questions take exactly one option id")
    unknown = [oid for oid in option_ids if oid not in valid_ids]
    if unknown:
        raise ValidationError(
            "Option ids do not belong to this question",
            details={"fieldErrors": {"optionIds": [f"Unknown option id {oid}" for oid in unknown]}, "formErrors": []},
        )
    return option_ids


def submit_response(
    db: Session,
    room: Room,
    question_id: str,
    participant_id: uuid.UUID,
    option_ids: Optional[list[str]] = None,
    text: Optional[str] = None,
) -> Response:
    """Record one participant's answer; a second answer to the same question is a Conflict."""
    question = (
        db.query(Question)
        .filter(Question.id == question_id, Question.room_id == room.id)
        .first()
    )
    if not question:
        raise NotFound("Question not found")

    if question.type.has_options:
        if text is not None:
            raise ValidationError.for_field("text", "Choice questions do not accept text answers")
        valid_ids = {
            oid for (oid,) in db.query(Option.id).filter(Option.question_id == question.id).all()
        }
        response = Response(
            room_id=room.id,
            question_id=question.id,
            participant_id=str(participant_id),
            type=ResponseType.choice,
            choice_option_ids=_validate_choice(question, option_ids, valid_ids),
        )
    else:
        if option_ids:
            raise ValidationError.for_field("optionIds", "Text questions do not accept option ids")
        if text is None or not text.strip():
            raise ValidationError.for_field("text", "Text questions require a non-empty answer")
        response = Response(
            room_id=room.id,
            question_id=question.id,
            participant_id=str(participant_id),
            type=ResponseType.text,
            text_answer=text.strip(),
        )

    # The participant row commits on its own, so a collision below can only be
    # the one-response-per-question index.
    join_room(db, room, participant_id)
    db.add(response)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not is_unique_violation(exc):
            raise
        raise Conflict("Participant has already responded to this question")
    db.refresh(response)
    logger.info("Recorded %s response to question %s in room %s", response.type.value, question.id, room.id)
    return response
