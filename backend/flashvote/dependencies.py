"""FastAPI dependencies shared by the routers."""
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from flashvote.context import REQUEST_ID_HEADER, RequestContext
from flashvote.database import get_db
from flashvote.models.question import Question
from flashvote.models.room import Room
from flashvote.services import access_control
from flashvote.services.token_authority import TokenAuthority


def get_token_authority(request: Request) -> TokenAuthority:
    """The authority built at startup from the configured pepper."""
    return request.app.state.token_authority


def get_request_context(request: Request) -> RequestContext:
    ctx = getattr(request.state, "context", None)
    if ctx is None:
        ctx = RequestContext.from_header(request.headers.get(REQUEST_ID_HEADER))
        request.state.context = ctx
    return ctx


def authorized_room(
    room_id: str,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    authority: TokenAuthority = Depends(get_token_authority),
) -> Room:
    return access_control.authorize_room(db, authority, room_id, authorization)


def authorized_question(
    question_id: str,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    authority: TokenAuthority = Depends(get_token_authority),
) -> tuple[Room, Question]:
    return access_control.authorize_question(db, authority, question_id, authorization)
