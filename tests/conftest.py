import os
import uuid

import pytest

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from fastapi.testclient import TestClient  # noqa: E402

from todo_ai.llm import StructuredGenerator, get_generator  # noqa: E402
from todo_ai.main import app  # noqa: E402


class FakeGenerator(StructuredGenerator):
    """Records every prompt and answers with a canned object or raises a canned error."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else {}
        self.error = error
        self.calls = []

    def generate(self, prompt, schema):
        self.calls.append((prompt, schema))
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last_prompt(self):
        return self.calls[-1][0]


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_generator_factory():
    def _make(response=None, error=None):
        generator = FakeGenerator(response, error)
        app.dependency_overrides[get_generator] = lambda: generator
        return generator

    yield _make
    app.dependency_overrides.pop(get_generator, None)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "test-key")


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("GOOGLE_GENERATIVE_AI_API_KEY", raising=False)


@pytest.fixture
def user_headers():
    """A fresh owner per test so the shared in-memory repository starts empty for it."""
    return {"X-User-Id": f"user-{uuid.uuid4()}"}
