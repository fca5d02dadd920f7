"""Host room API routes: creation, overview, publication lifecycle, questions."""
import logging
from datetime import timedelta
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from flashvote.config import settings
from flashvote.context import RequestContext
from flashvote.database import get_db
from flashvote.dependencies import authorized_room, get_request_context, get_token_authority
from flashvote.models.room import Room
from flashvote.schemas.question import QuestionCreate, QuestionOut
from flashvote.schemas.response import AuditLogOut, RoomResults
from flashvote.schemas.room import (
    HostRoomView, RoomCreate, RoomCreated, RoomOut, RoomStatusOut, RoomUpdate,
)
from flashvote.services import audit_service, host_view_service, lifecycle_service
from flashvote.services.token_authority import TokenAuthority

logger = logging.getLogger(__name__)
router = APIRouter()


def _host_management_url(room_id: str, token: str) -> str:
    return f"{settings.WEB_BASE_URL.rstrip('/')}/host/{room_id}?{urlencode({'token': token})}"


def _public_url(room_id: str) -> str:
    return f"{settings.WEB_BASE_URL.rstrip('/')}/r/{room_id}"


@router.post("", response_model=RoomCreated, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    db: Session = Depends(get_db),
    authority: TokenAuthority = Depends(get_token_authority),
    ctx: RequestContext = Depends(get_request_context),
):
    """Create a draft room. The host token in the response is never retrievable again."""
    room, token = lifecycle_service.create_room(
        db=db,
        authority=authority,
        title=payload.title,
        purpose_text=payload.purpose_text,
        ctx=ctx,
    )
    return {
        "room": {"id": room.id, "status": room.status},
        "host_token": token,
        "host_management_url": _host_management_url(room.id, token),
        "public_url": _public_url(room.id),
    }


@router.get("/{room_id}", response_model=HostRoomView)
def get_room(room: Room = Depends(authorized_room), db: Session = Depends(get_db)):
    """Host overview: room attributes, ordered questions and options, guest counts."""
    return host_view_service.get_host_view(
        db, room, active_window=timedelta(seconds=settings.ACTIVE_GUEST_WINDOW_SECONDS),
    )


@router.patch("/{room_id}", response_model=RoomOut)
def update_room(
    payload: RoomUpdate,
    room: Room = Depends(authorized_room),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Partial update of title / purpose text."""
    return lifecycle_service.update_room(db, room, payload.model_dump(exclude_unset=True), ctx=ctx)


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(
    room: Room = Depends(authorized_room),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Delete the room and everything it owns."""
    lifecycle_service.delete_room(db, room, ctx=ctx)


@router.post("/{room_id}/publish", response_model=RoomStatusOut)
def publish_room(
    room: Room = Depends(authorized_room),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """draft → published; anything else is a 409."""
    return lifecycle_service.publish_room(db, room, ctx=ctx)


@router.post("/{room_id}/unpublish", response_model=RoomStatusOut)
def unpublish_room(
    room: Room = Depends(authorized_room),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """published → draft; anything else is a 409."""
    return lifecycle_service.unpublish_room(db, room, ctx=ctx)


@router.post("/{room_id}/questions", response_model=QuestionOut, status_code=status.HTTP_201_CREATED)
def create_question(
    payload: QuestionCreate,
    room: Room = Depends(authorized_room),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Append a question (and its options) at the end of the room's order."""
    return lifecycle_service.create_question(
        db=db,
        room=room,
        question_type=payload.type,
        prompt=payload.prompt,
        options=payload.options,
        ctx=ctx,
    )


@router.get("/{room_id}/results", response_model=RoomResults)
def get_results(room: Room = Depends(authorized_room), db: Session = Depends(get_db)):
    """Aggregated responses per question."""
    return host_view_service.get_results(db, room)


@router.get("/{room_id}/audit-logs", response_model=list[AuditLogOut])
def list_audit_logs(room: Room = Depends(authorized_room), db: Session = Depends(get_db)):
    """Audit trail for the room, newest first."""
    return audit_service.list_entries(db, room.id)
