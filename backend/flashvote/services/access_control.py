"""Host authorization for rooms and questions.

Lookup happens before credential checks, so an unknown id is reported as
NotFound regardless of the presented token. Every credential failure uses the
same message so callers cannot tell which step rejected them.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from flashvote.errors import NotFound, Unauthorized
from flashvote.models.question import Question
from flashvote.models.room import Room
from flashvote.services.token_authority import TokenAuthority

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header value."""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        raise Unauthorized()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token or " " in token:
        raise Unauthorized()
    return token


def authorize_room(
    db: Session,
    authority: TokenAuthority,
    room_id: str,
    authorization: Optional[str],
) -> Room:
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise NotFound("Room not found")

    token = extract_bearer(authorization)
    if not authority.verify(token, room.host_token_hash):
        logger.info("Rejected host token for room %s", room_id)
        raise Unauthorized()
    return room


def authorize_question(
    db: Session,
    authority: TokenAuthority,
    question_id: str,
    authorization: Optional[str],
) -> tuple[Room, Question]:
    question = db.query(Question).filter(Question.id == question_id).first()
    if not question:
        raise NotFound("Question not found")
    room = authorize_room(db, authority, question.room_id, authorization)
    return room, question
