"""Guest API routes: public room view, joining and responding."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from flashvote.database import get_db
from flashvote.schemas.response import ParticipantJoin, ParticipantOut, ResponseCreate, ResponseOut
from flashvote.schemas.room import PublicRoomView
from flashvote.services import participation_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{room_id}", response_model=PublicRoomView)
def get_room(room_id: str, db: Session = Depends(get_db)):
    """Public view of a published room (no host data)."""
    room = participation_service.get_open_room(db, room_id)
    return participation_service.get_public_view(db, room)


@router.post("/{room_id}/participants", response_model=ParticipantOut)
def join_room(room_id: str, payload: ParticipantJoin, db: Session = Depends(get_db)):
    """Join a room, or refresh presence for a returning participant."""
    room = participation_service.get_open_room(db, room_id)
    return participation_service.join_room(db, room, payload.participant_id)


@router.post(
    "/{room_id}/questions/{question_id}/responses",
    response_model=ResponseOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_response(room_id: str, question_id: str, payload: ResponseCreate, db: Session = Depends(get_db)):
    """Answer a question; each participant may answer each question once."""
    room = participation_service.get_open_room(db, room_id)
    return participation_service.submit_response(
        db=db,
        room=room,
        question_id=question_id,
        participant_id=payload.participant_id,
        option_ids=payload.option_ids,
        text=payload.text,
    )
