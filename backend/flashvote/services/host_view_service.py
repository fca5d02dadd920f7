"""Host-facing read models: the room overview and aggregated results.

Query count stays constant in the number of questions: questions, options,
participants and responses are each fetched with a single query.
"""
import logging
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from flashvote.database import utcnow
from flashvote.models.option import Option
from flashvote.models.participant import Participant
from flashvote.models.question import Question
from flashvote.models.response import Response
from flashvote.models.room import Room

logger = logging.getLogger(__name__)


def _room_attributes(room: Room) -> dict[str, Any]:
    # Deliberately excludes host_token_hash.
    return {
        "id": room.id,
        "title": room.title,
        "purpose_text": room.purpose_text,
        "status": room.status,
        "published_at": room.published_at,
        "ended_at": room.ended_at,
        "current_question_index": room.current_question_index,
        "created_at": room.created_at,
        "updated_at": room.updated_at,
    }


def load_questions_with_options(db: Session, room_id: str) -> list[dict[str, Any]]:
    """Questions by order, each with its options by order, in two queries total."""
    questions = (
        db.query(Question)
        .filter(Question.room_id == room_id)
        .order_by(Question.order)
        .all()
    )
    if not questions:
        return []

    options_by_question: dict[str, list[dict[str, Any]]] = defaultdict(list)
    options = (
        db.query(Option)
        .filter(Option.question_id.in_([q.id for q in questions]))
        .order_by(Option.question_id, Option.order)
        .all()
    )
    for opt in options:
        options_by_question[opt.question_id].append({"id": opt.id, "label": opt.label, "order": opt.order})

    return [
        {
            "id": q.id,
            "order": q.order,
            "type": q.type,
            "prompt": q.prompt,
            "status": q.status,
            "options": options_by_question.get(q.id, []),
        }
        for q in questions
    ]


def count_guests(db: Session, room_id: str, active_window: timedelta) -> dict[str, int]:
    """Total = every participant ever seen; active = seen within ``active_window``."""
    cutoff = utcnow() - active_window
    total, active = (
        db.query(
            func.count(Participant.id),
            func.count(Participant.id).filter(Participant.last_seen_at >= cutoff),
        )
        .filter(Participant.room_id == room_id)
        .one()
    )
    return {"active": active or 0, "total": total or 0}


def get_host_view(db: Session, room: Room, active_window: timedelta) -> dict[str, Any]:
    """Assemble the host overview for an already-authorized room."""
    return {
        "room": _room_attributes(room),
        "questions": load_questions_with_options(db, room.id),
        "guest_count": count_guests(db, room.id, active_window),
    }


def get_results(db: Session, room: Room) -> dict[str, Any]:
    """Per-question response totals, option tallies and text answers."""
    questions = load_questions_with_options(db, room.id)
    responses = (
        db.query(Response)
        .filter(Response.room_id == room.id)
        .order_by(Response.created_at, Response.id)
        .all()
    )

    by_question: dict[str, list[Response]] = defaultdict(list)
    for resp in responses:
        by_question[resp.question_id].append(resp)

    results = []
    for q in questions:
        answered = by_question.get(q["id"], [])
        tally = Counter(oid for resp in answered for oid in (resp.choice_option_ids or []))
        results.append({
            "question_id": q["id"],
            "order": q["order"],
            "type": q["type"],
            "prompt": q["prompt"],
            "total_responses": len(answered),
            "options": [
                {"option_id": opt["id"], "label": opt["label"], "count": tally.get(opt["id"], 0)}
                for opt in q["options"]
            ],
            "text_answers": [resp.text_answer for resp in answered if resp.text_answer is not None],
        })

    logger.debug("Computed results for room %s: %d responses", room.id, len(responses))
    return {"room_id": room.id, "questions": results}
