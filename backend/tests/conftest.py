"""Pytest fixtures: SQLite database per test, app wired to it through get_db."""
import os

# Configuration is read at import time; these must be set before flashvote loads.
os.environ.setdefault("HOST_TOKEN_PEPPER", "test-pepper")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from flashvote.database import Base, get_db
from flashvote.main import app

# Import all models so they register with Base.metadata
from flashvote.models.room import Room                # noqa: F401
from flashvote.models.question import Question        # noqa: F401
from flashvote.models.option import Option            # noqa: F401
from flashvote.models.participant import Participant  # noqa: F401
from flashvote.models.response import Response        # noqa: F401
from flashvote.models.audit_log import AuditLog       # noqa: F401

SQLITE_URL = "sqlite:///./test.db"
TEST_PEPPER = "test-pepper"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # WAL for concurrent readers; foreign keys so ON DELETE CASCADE is honoured
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session for direct assertions against the store."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


def _use_engine(db_engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    _use_engine(db_engine)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def failing_client(db_engine):
    """Like ``client``, but unhandled errors come back as 500 responses instead of raising."""
    _use_engine(db_engine)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: drive the API the way the host SPA does
# ---------------------------------------------------------------------------
def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_test_room(client: TestClient, title: str = "Friday retro", purpose: str = None) -> dict:
    """Helper: POST /api/host/rooms and return response JSON (includes hostToken)."""
    body = {"title": title}
    if purpose is not None:
        body["purposeText"] = purpose
    resp = client.post("/api/host/rooms", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_question(
    client: TestClient,
    room: dict,
    prompt: str = "Ship it?",
    qtype: str = "single_choice",
    options: list = None,
) -> dict:
    """Helper: POST a question to a room and return response JSON."""
    body = {"type": qtype, "prompt": prompt}
    if qtype != "text":
        body["options"] = options if options is not None else ["Yes", "No"]
    resp = client.post(
        f"/api/host/rooms/{room['room']['id']}/questions",
        json=body,
        headers=auth(room["hostToken"]),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def publish(client: TestClient, room: dict):
    return client.post(f"/api/host/rooms/{room['room']['id']}/publish", headers=auth(room["hostToken"]))
