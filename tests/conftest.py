"""
Shared fixtures for the chat backend tests.

Every test gets a fresh in-memory MongoDB (mongomock) installed through
``database.connect(client=...)``; the FastAPI lifespan is not run, so no
real server is contacted.

Usage:
    def test_example(api):
        response = api.get("/rooms")
        assert response.status_code == 200
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

import config
import database
import realtime


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch, tmp_path):
    # Minimum bcrypt cost keeps hashing fast
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(config, "JWT_SECRET", "test-signing-secret-0123456789abcdef")
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "REQUIRE_ROOM_MEMBERSHIP", True)
    monkeypatch.setattr(config, "REALTIME_ENABLED", True)
    db = database.connect(name="chat_test", client=mongomock.MongoClient(tz_aware=True))
    database.ensure_indexes()
    yield db
    database.close()
    realtime.broker.subscribers.clear()


@pytest.fixture
def api():
    from main import app

    # Not used as a context manager: the lifespan would connect to a real server
    return TestClient(app)


@pytest.fixture
def alice():
    return {"name": "Alice", "email": "alice@example.com", "password": "wonderland"}


@pytest.fixture
def bob():
    return {"name": "Bob", "email": "bob@example.com", "password": "builder"}


class FakeWebSocket:
    """Records what the broker sends; optionally fails every send."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(data)


@pytest.fixture
def fake_ws():
    return FakeWebSocket
