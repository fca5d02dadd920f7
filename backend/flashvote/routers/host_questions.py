"""Host question API routes: edit and delete by question id."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from flashvote.context import RequestContext
from flashvote.database import get_db
from flashvote.dependencies import authorized_question, get_request_context
from flashvote.schemas.question import QuestionOut, QuestionUpdate
from flashvote.services import lifecycle_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.patch("/{question_id}", response_model=QuestionOut)
def update_question(
    payload: QuestionUpdate,
    authorized=Depends(authorized_question),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Replace prompt, order and/or the whole option list."""
    room, question = authorized
    return lifecycle_service.update_question(
        db=db,
        room=room,
        question=question,
        prompt=payload.prompt,
        order=payload.order,
        options=payload.options,
        ctx=ctx,
    )


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    authorized=Depends(authorized_question),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Delete a question with its options and responses."""
    room, question = authorized
    lifecycle_service.delete_question(db, room, question, ctx=ctx)
