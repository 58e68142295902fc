import uuid

import pytest

from hookbin import create_app
from hookbin.db import Storage
from hookbin.models import Token
from hookbin.utils.clock import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    s = Storage("sqlite://")
    s.initialize()
    yield s
    s.dispose()


@pytest.fixture
def make_token(storage, clock):
    def _make(**kwargs):
        token_id = kwargs.pop("token", str(uuid.uuid4()))
        token = Token(
            token=token_id,
            created_at=kwargs.pop("created_at", clock.timestamp()),
            webhook_url=kwargs.pop("webhook_url", f"http://localhost:3000/{token_id}"),
        )
        storage.create_token(token)
        return token
    return _make


@pytest.fixture
def app(clock):
    app = create_app(
        {"TESTING": True, "DATABASE_URL": "sqlite://", "BASE_URL": None},
        clock=clock,
    )
    yield app
    app.extensions["hookbin"].storage.dispose()


@pytest.fixture
def client(app):
    return app.test_client()
