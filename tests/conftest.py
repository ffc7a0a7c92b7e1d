"""Shared fixtures. Environment is configured before any evite import."""

import os
import tempfile

os.environ["EVITE_DATA_DIR"] = tempfile.mkdtemp()
os.environ["EVITE_DB_PATH"] = os.path.join(os.environ["EVITE_DATA_DIR"], "test.db")
os.environ["EVITE_ADMIN_EMAILS"] = "admin@example.com, Second@Example.com"
os.environ["EVITE_BASE_URL"] = "https://rsvp.example.com"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete, event
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from evite.config import settings
from evite.database import engine, init_db
from evite.models.invitation import Invitation
from evite.models.response import Response
from evite.utils.security import create_admin_token

init_db()


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with Session(engine) as session:
        session.exec(delete(Response))
        session.exec(delete(Invitation))
        session.commit()


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    from evite.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_admin_token('admin@example.com', 'Admin')}"}


@pytest.fixture
def open_rsvp(monkeypatch):
    monkeypatch.setattr(settings, "rsvp_deadline", None)


@pytest.fixture
def fail_statement():
    """Make every SQL statement starting with the given prefix raise OperationalError."""
    listeners = []

    def install(prefix: str):
        def _raise(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith(prefix.upper()):
                raise OperationalError(statement, parameters, Exception("disk I/O error"))

        event.listen(engine, "before_cursor_execute", _raise)
        listeners.append(_raise)

    yield install

    for fn in listeners:
        event.remove(engine, "before_cursor_execute", fn)
