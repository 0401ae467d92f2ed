import asyncio
import itertools

import pytest
from fastapi.testclient import TestClient

from helpdesk_api.app.core.config import settings
from helpdesk_api.app.core.db import init_db
from helpdesk_api.app.main import app
from helpdesk_api.app.schemas.ticket import TicketCreate
from helpdesk_api.app.schemas.user import UserSignup
from helpdesk_api.app.services import chat_service
from helpdesk_api.app.services.ticket_service import TicketService
from helpdesk_api.app.services.user_service import UserService


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point every test at a fresh SQLite file."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "helpdesk-test.db"))
    monkeypatch.setattr(settings, "verify_chat_tokens", False)
    init_db()
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def clock(monkeypatch):
    """Deterministic chat timestamps, one second apart."""
    ticks = (f"2024-05-01T10:00:{second:02d}.000Z" for second in itertools.count())
    monkeypatch.setattr(chat_service, "now_iso", lambda: next(ticks))


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def make_user():
    def _make(email="ada@example.com", fullname="Ada Lovelace", role="customer", password="secret"):
        return run(UserService.signup(UserSignup(fullname=fullname, email=email, password=password, role=role)))

    return _make


@pytest.fixture
def make_ticket():
    def _make(user_id="u1", title="Printer is on fire", priority="high", rng=None):
        return run(
            TicketService.create_ticket(
                TicketCreate(
                    title=title,
                    description="Smoke everywhere",
                    priority=priority,
                    userEmail="ada@example.com",
                    userName="Ada",
                    userId=user_id,
                ),
                rng=rng,
            )
        )

    return _make
