"""
Shared pytest fixtures.

The database URL and upload directory are pointed at a temporary location
before any application module is imported, since ``config`` and
``database`` read them at import time.
"""

import os
import tempfile
from pathlib import Path

import pytest

_TMP_ROOT = Path(tempfile.mkdtemp(prefix="gpt-catalog-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_ROOT / 'test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP_ROOT / "uploads")
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ["LLM_PROVIDER"] = "openai"

from fastapi.testclient import TestClient  # noqa: E402
from langchain_core.messages import AIMessage  # noqa: E402

import database as db  # noqa: E402
from config import settings  # noqa: E402
from functions.llm import ChatClient  # noqa: E402


class RecordingChatModel:
    """Stands in for a LangChain chat model; records bind kwargs and messages."""

    def __init__(self, content="Resposta do modelo", error=None):
        self.content = content
        self.error = error
        self.bound = []
        self.calls = []

    def bind(self, **kwargs):
        self.bound.append(kwargs)
        return self

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return AIMessage(content=self.content)


@pytest.fixture
def fake_llm():
    return RecordingChatModel()


@pytest.fixture
def chat_client(fake_llm):
    return ChatClient(fake_llm, provider="openai", default_model="gpt-4o")


@pytest.fixture
def upload_dir():
    path = Path(settings.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    yield path
    for child in path.iterdir():
        if child.is_file():
            child.unlink()


@pytest.fixture
def clean_db():
    db.Base.metadata.drop_all(bind=db.engine)
    db.create_tables()
    yield


@pytest.fixture
def client(chat_client, upload_dir, clean_db):
    from main import app, get_chat_client

    app.dependency_overrides[get_chat_client] = lambda: chat_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
