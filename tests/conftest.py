"""Pytest fixtures: test client, in-memory SQLite, fake OpenAI client."""
import json
import os
import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

# In-memory SQLite and a dummy key; must be set before medichat is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-dummy")
os.environ.setdefault("RECORD_STORE", "database")
# High enough that no test trips the analyze limit
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")

from medichat.main import app
from medichat.services import analyze as analyze_service


class FakeCompletions:
    def __init__(self):
        self.payload: object = {}
        self.raw: str | None = None
        self.error: Exception | None = None
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        content = self.raw if self.raw is not None else json.dumps(self.payload)
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    """Stands in for openai.OpenAI: only chat.completions.create is used."""

    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_openai(monkeypatch):
    fake = FakeOpenAI()
    monkeypatch.setattr(analyze_service, "_get_client_for_key", lambda key: fake)
    return fake.completions


@pytest.fixture(scope="function")
def client():
    """TestClient; the lifespan creates the tables in the in-memory DB."""
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    """Fresh user per test so records in the shared in-memory DB never mix."""
    return f"user-{uuid.uuid4().hex[:10]}"
