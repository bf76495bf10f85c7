import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mcq_manager.db import get_db, init_db
from mcq_manager.gemini_client import get_llm_client
from mcq_manager.main import app
from mcq_manager.settings import settings
from mcq_manager.sms_client import get_sms_client
from mcq_manager.storage import Storage


class FakeLLM:
    """Replays canned replies; an Exception in the queue is raised instead of returned."""

    def __init__(self):
        self.replies = []
        self.calls = []

    async def complete(self, messages, *, temperature=None):
        self.calls.append({"messages": messages, "temperature": temperature})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeSms:
    def __init__(self):
        self.started = []
        self.checked = []
        self.check_status = "approved"

    async def start_verification(self, phone):
        self.started.append(phone)
        return {"status": "pending"}

    async def check_verification(self, phone, code):
        self.checked.append((phone, code))
        return {"status": self.check_status}


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def storage(engine):
    db = sessionmaker(bind=engine, autoflush=False)()
    yield Storage(db)
    db.close()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def client(engine, llm, sms, monkeypatch):
    SessionTest = sessionmaker(bind=engine, autoflush=False)

    def override_get_db():
        db = SessionTest()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: llm
    app.dependency_overrides[get_sms_client] = lambda: sms
    monkeypatch.setattr(settings, "generation_retry_delay_seconds", 0.0)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def topic_id(client):
    subject = client.post("/subjects", json=[{"name": "Pathology"}]).json()[0]
    r = client.post(
        f"/subjects/{subject['id']}/chapters",
        json={"chapters": [{"name": "Cell injury", "topics": [{"name": "Necrosis"}]}]},
    )
    return r.json()["topics"][0]["id"]


def mcq_payload(index, correct="B"):
    return {
        "learning_gap": f"gap {index}",
        "stem": f"A 45-year-old man presents with case {index}.",
        "options": {"A": "one", "B": "two", "C": "three", "D": "four", "E": "five"},
        "correct_answer": correct,
        "explanation": "Because.",
    }


@pytest.fixture
def question_ids(client, topic_id):
    r = client.post(f"/topics/{topic_id}/mcqs", json={"mcqs": [mcq_payload(i) for i in range(10)]})
    return [m["id"] for m in r.json()["mcqs"]]
