"""Tests for question creation, editing, option replacement and deletion.

Covers:
- Ordering: N questions get orders 0..N-1, deletion never renumbers
- Option replacement: full, positional, destructive
- Type/option exclusivity on create and update
- Audit entry per mutation
- Cascade: deleting a question removes its options and responses
- Atomicity: question, options and audit entry commit together or not at all
"""
from sqlalchemy.orm import sessionmaker

from flashvote.models.audit_log import AuditLog
from flashvote.models.option import Option
from flashvote.models.question import Question
from flashvote.models.response import Response
from flashvote.services import audit_service, lifecycle_service
from tests.conftest import auth, create_test_question, create_test_room, publish


def _patch(client, room, question, body):
    return client.patch(f"/api/host/questions/{question['id']}", json=body, headers=auth(room["hostToken"]))


def _orders(client, room):
    view = client.get(f"/api/host/rooms/{room['room']['id']}", headers=auth(room["hostToken"])).json()
    return [(q["prompt"], q["order"]) for q in view["questions"]]


class TestQuestionCreate:

    def test_create_single_choice(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room, prompt="Lunch?", options=["Pizza", "Salad", "Soup"])
        assert q["type"] == "single_choice"
        assert q["status"] == "not_open"
        assert q["order"] == 0
        assert [(o["label"], o["order"]) for o in q["options"]] == [("Pizza", 0), ("Salad", 1), ("Soup", 2)]

    def test_create_text_question(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room, prompt="Any feedback?", qtype="text")
        assert q["type"] == "text"
        assert q["options"] == []

    def test_orders_follow_creation(self, client):
        room = create_test_room(client)
        for i in range(4):
            create_test_question(client, room, prompt=f"Q{i}")
        assert _orders(client, room) == [("Q0", 0), ("Q1", 1), ("Q2", 2), ("Q3", 3)]

    def test_text_question_rejects_options(self, client):
        room = create_test_room(client)
        resp = client.post(
            f"/api/host/rooms/{room['room']['id']}/questions",
            json={"type": "text", "prompt": "Why?", "options": ["A"]},
            headers=auth(room["hostToken"]),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_choice_question_requires_options(self, client):
        room = create_test_room(client)
        for body in (
            {"type": "multi_choice", "prompt": "Pick"},
            {"type": "single_choice", "prompt": "Pick", "options": []},
        ):
            resp = client.post(
                f"/api/host/rooms/{room['room']['id']}/questions",
                json=body,
                headers=auth(room["hostToken"]),
            )
            assert resp.status_code == 400, body

    def test_prompt_and_label_limits(self, client):
        room = create_test_room(client)
        url = f"/api/host/rooms/{room['room']['id']}/questions"
        too_long_prompt = client.post(
            url, json={"type": "text", "prompt": "p" * 201}, headers=auth(room["hostToken"]),
        )
        too_long_label = client.post(
            url, json={"type": "single_choice", "prompt": "ok", "options": ["l" * 61]},
            headers=auth(room["hostToken"]),
        )
        unknown_type = client.post(
            url, json={"type": "ranking", "prompt": "ok"}, headers=auth(room["hostToken"]),
        )
        assert too_long_prompt.status_code == 400
        assert too_long_label.status_code == 400
        assert unknown_type.status_code == 400

    def test_create_requires_token(self, client):
        room = create_test_room(client)
        resp = client.post(
            f"/api/host/rooms/{room['room']['id']}/questions",
            json={"type": "text", "prompt": "Hi"},
        )
        assert resp.status_code == 401

    def test_create_writes_audit_entry(self, client, db):
        room = create_test_room(client)
        q = create_test_question(client, room)
        entry = db.query(AuditLog).filter(AuditLog.action == "question.created").one()
        assert entry.room_id == room["room"]["id"]
        assert entry.meta == {"questionId": q["id"]}


class TestQuestionUpdate:

    def test_replace_options(self, client, db):
        room = create_test_room(client)
        q = create_test_question(client, room, options=["A", "B", "C"])
        resp = _patch(client, room, q, {"options": ["X", "Y"]})
        assert resp.status_code == 200
        assert [(o["label"], o["order"]) for o in resp.json()["options"]] == [("X", 0), ("Y", 1)]

        stored = db.query(Option).filter(Option.question_id == q["id"]).order_by(Option.order).all()
        assert [(o.label, o.order) for o in stored] == [("X", 0), ("Y", 1)]

    def test_replacement_issues_new_option_ids(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room, options=["A", "B"])
        old_ids = {o["id"] for o in q["options"]}
        new = _patch(client, room, q, {"options": ["A", "B"]}).json()
        assert old_ids.isdisjoint({o["id"] for o in new["options"]})

    def test_update_prompt_keeps_options_and_order(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room, prompt="Before", options=["A", "B"])
        resp = _patch(client, room, q, {"prompt": "After"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["prompt"] == "After"
        assert data["order"] == 0
        assert [o["label"] for o in data["options"]] == ["A", "B"]

    def test_options_on_text_question_rejected(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room, qtype="text")
        resp = _patch(client, room, q, {"options": ["A"]})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert "options" in error["details"]["fieldErrors"]

    def test_rejected_update_changes_nothing(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room, prompt="Keep", qtype="text")
        _patch(client, room, q, {"prompt": "Changed", "options": ["A"]})
        assert _orders(client, room) == [("Keep", 0)]

    def test_empty_option_list_rejected(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room)
        assert _patch(client, room, q, {"options": []}).status_code == 400

    def test_empty_update_rejected(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room)
        assert _patch(client, room, q, {}).status_code == 400

    def test_move_to_free_order(self, client):
        room = create_test_room(client)
        q = create_test_question(client, room)
        resp = _patch(client, room, q, {"order": 7})
        assert resp.status_code == 200
        assert resp.json()["order"] == 7

    def test_move_to_taken_order_conflicts_and_rolls_back(self, client):
        room = create_test_room(client)
        first = create_test_question(client, room, prompt="First")
        create_test_question(client, room, prompt="Second")
        resp = _patch(client, room, first, {"order": 1, "prompt": "Renamed"})
        assert resp.status_code == 409
        assert _orders(client, room) == [("First", 0), ("Second", 1)]

    def test_update_with_other_rooms_token(self, client):
        room = create_test_room(client)
        other = create_test_room(client, title="Other")
        q = create_test_question(client, room)
        resp = client.patch(
            f"/api/host/questions/{q['id']}", json={"prompt": "Hijack"}, headers=auth(other["hostToken"]),
        )
        assert resp.status_code == 401

    def test_unknown_question(self, client):
        room = create_test_room(client)
        resp = client.patch(
            "/api/host/questions/00000000-0000-0000-0000-000000000000",
            json={"prompt": "x"},
            headers=auth(room["hostToken"]),
        )
        assert resp.status_code == 404

    def test_update_writes_audit_entry(self, client, db):
        room = create_test_room(client)
        q = create_test_question(client, room)
        _patch(client, room, q, {"prompt": "New", "options": ["X"]})
        entry = db.query(AuditLog).filter(AuditLog.action == "question.updated").one()
        assert entry.meta["questionId"] == q["id"]
        assert sorted(entry.meta["fields"]) == ["options", "prompt"]


class TestQuestionDelete:

    def test_delete_middle_does_not_renumber(self, client):
        room = create_test_room(client)
        create_test_question(client, room, prompt="Q0")
        middle = create_test_question(client, room, prompt="Q1")
        create_test_question(client, room, prompt="Q2")

        resp = client.delete(f"/api/host/questions/{middle['id']}", headers=auth(room["hostToken"]))
        assert resp.status_code == 204
        assert _orders(client, room) == [("Q0", 0), ("Q2", 2)]

    def test_new_question_after_delete_uses_max_plus_one(self, client):
        room = create_test_room(client)
        create_test_question(client, room, prompt="Q0")
        last = create_test_question(client, room, prompt="Q1")
        client.delete(f"/api/host/questions/{last['id']}", headers=auth(room["hostToken"]))
        assert create_test_question(client, room, prompt="Q2")["order"] == 1

    def test_delete_cascades_options_and_responses(self, client, db):
        room = create_test_room(client)
        q = create_test_question(client, room, options=["A", "B"])
        publish(client, room)
        resp = client.post(
            f"/api/rooms/{room['room']['id']}/questions/{q['id']}/responses",
            json={"participantId": "11111111-1111-1111-1111-111111111111", "optionIds": [q["options"][0]["id"]]},
        )
        assert resp.status_code == 201

        client.delete(f"/api/host/questions/{q['id']}", headers=auth(room["hostToken"]))
        assert db.query(Option).filter(Option.question_id == q["id"]).count() == 0
        assert db.query(Response).filter(Response.question_id == q["id"]).count() == 0

    def test_delete_writes_audit_entry(self, client, db):
        room = create_test_room(client)
        q = create_test_question(client, room)
        client.delete(f"/api/host/questions/{q['id']}", headers=auth(room["hostToken"]))
        entry = db.query(AuditLog).filter(AuditLog.action == "question.deleted").one()
        assert entry.meta == {"questionId": q["id"]}


class TestQuestionAtomicity:
    """Question, options and the audit entry land in one commit or not at all."""

    def test_order_taken_by_concurrent_creator_conflicts(self, client, db, monkeypatch):
        room = create_test_room(client)
        create_test_question(client, room, prompt="First", qtype="text")
        # Another host request already claimed the order this one computed.
        monkeypatch.setattr(lifecycle_service, "_next_question_order", lambda session, room_id: 0)

        resp = client.post(
            f"/api/host/rooms/{room['room']['id']}/questions",
            json={"type": "text", "prompt": "Second"},
            headers=auth(room["hostToken"]),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "CONFLICT"
        assert db.query(Question).filter(Question.prompt == "Second").count() == 0
        assert db.query(AuditLog).filter(AuditLog.action == "question.created").count() == 1

    def test_failed_option_insert_leaves_no_question(self, client, db, monkeypatch):
        room = create_test_room(client)
        # Every option claims order 0, so the second insert breaks (question_id, order).
        monkeypatch.setattr(lifecycle_service, "Option", lambda label, order: Option(label=label, order=0))

        resp = client.post(
            f"/api/host/rooms/{room['room']['id']}/questions",
            json={"type": "single_choice", "prompt": "Doomed", "options": ["A", "B"]},
            headers=auth(room["hostToken"]),
        )
        assert resp.status_code == 409
        assert db.query(Question).count() == 0
        assert db.query(Option).count() == 0
        assert db.query(AuditLog).filter(AuditLog.action == "question.created").count() == 0

    def test_audit_failure_is_internal_error_and_keeps_question(self, failing_client, db, monkeypatch):
        room = create_test_room(failing_client)
        q = create_test_question(failing_client, room, prompt="Keep", options=["A", "B"])

        def _broken_record(session, room_id, actor, action, meta=None):
            session.add(AuditLog(room_id=room_id, actor=actor, action=None))

        monkeypatch.setattr(audit_service, "record", _broken_record)
        resp = _patch(failing_client, room, q, {"prompt": "Changed", "options": ["X"]})
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "INTERNAL_ERROR"

        stored = db.query(Question).filter(Question.id == q["id"]).one()
        assert stored.prompt == "Keep"
        assert [o.label for o in stored.options] == ["A", "B"]

    def test_replacement_invisible_until_commit(self, client, db_engine, monkeypatch):
        room = create_test_room(client)
        q = create_test_question(client, room, options=["A", "B", "C"])
        Observer = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
        seen = []
        record = audit_service.record

        # Runs after the DELETE and the new inserts, before the commit.
        def _record_and_look(session, room_id, actor, action, meta=None):
            session.flush()
            observer = Observer()
            try:
                rows = observer.query(Option).filter(Option.question_id == q["id"]).order_by(Option.order).all()
                seen.append([o.label for o in rows])
            finally:
                observer.close()
            return record(session, room_id, actor, action, meta)

        monkeypatch.setattr(audit_service, "record", _record_and_look)
        resp = _patch(client, room, q, {"options": ["X", "Y"]})
        assert resp.status_code == 200

        assert seen == [["A", "B", "C"]]
        assert [o["label"] for o in resp.json()["options"]] == ["X", "Y"]
