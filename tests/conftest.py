"""Pytest fixtures for SingularShift tests.

Provides an in-memory document store, fake completion and voice
collaborators, and a FastAPI test client wired to them.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("VAPI_ASSISTANT_ID", "test-assistant")
os.environ.setdefault("COMPLETION_PROVIDER", "claude")

import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api import models  # noqa: F401
from api.config.database import Base, get_db
from api.dependencies import get_report_requester
from api.main import app
from api.services.document_store import DocumentStore
from audit.errors import CompletionError, PersistenceError
from audit.models import ParticipantProfile
from audit.report_requester import ReportRequester


AUDIT_TRANSCRIPT = [
    {"role": "assistant", "content": "Hi Sam, thanks for joining. Could you describe your role?"},
    {"role": "user", "content": "I manage the onboarding team and oversee contracts for new clients."},
    {"role": "assistant", "content": "What are the biggest pain points in your week?"},
    {"role": "user", "content": "Our biggest bottleneck is manual data entry between the CRM and spreadsheets, because nothing is integrated."},
    {"role": "assistant", "content": "Which software do you rely on?"},
    {"role": "user", "content": "We use Salesforce, Excel and Slack, and it is mostly manual work."},
    {"role": "assistant", "content": "Have you used any AI tools like ChatGPT?"},
    {"role": "user", "content": "I use ChatGPT daily for drafting emails and I am comfortable with it."},
    {"role": "assistant", "content": "How big is your team?"},
    {"role": "user", "content": "There are eight people in my team."},
    {"role": "assistant", "content": "How many hours a week go on repetitive tasks?"},
    {"role": "user", "content": "Probably around 10 hours per week on repetitive admin."},
    {"role": "assistant", "content": "Thank you, that concludes our audit. Have a great day!"},
]

REPORT_JSON = json.dumps({
    "readinessScore": 68,
    "benchmarkSummary": "Above average for onboarding teams of a similar size.",
    "recommendations": [
        "Implement CRM-to-spreadsheet sync for client onboarding to address manual data entry.",
    ],
    "strengths": ["Daily use of ChatGPT."],
    "weaknesses": ["Disconnected systems."],
})


class FakeCompletionClient:
    """Completion client returning queued replies.

    A queued exception is raised instead of returned; an empty queue
    behaves like an unavailable service.
    """

    provider = "fake"

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    async def complete(self, prompt, *, model=None, temperature=0, response_format=None, system=None):
        self.calls.append({
            "prompt": prompt,
            "model": model,
            "temperature": temperature,
            "response_format": response_format,
            "system": system,
        })
        if not self.replies:
            raise CompletionError("No reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeVoiceSession:
    """Voice session that records start/stop requests."""

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.started = []
        self.stop_count = 0

    async def start(self, assistant_id, params):
        if self.fail_with is not None:
            raise self.fail_with
        self.started.append((assistant_id, params))

    async def stop(self):
        self.stop_count += 1


class RecordingNotifier:
    def __init__(self):
        self.statuses = []
        self.toasts = []
        self.redirects = []

    async def status(self, status):
        self.statuses.append(status)

    async def notify(self, level, message):
        self.toasts.append((level, message))

    async def redirect(self, path):
        self.redirects.append(path)


class RecordingStore:
    """In-memory document sink."""

    def __init__(self, fail=False):
        self.fail = fail
        self.documents = []

    def add(self, collection, doc):
        if self.fail:
            raise PersistenceError("Disk full")
        self.documents.append((collection, doc))
        return f"doc-{len(self.documents)}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return DocumentStore(db_session)


@pytest.fixture
def completion():
    return FakeCompletionClient()


@pytest.fixture
def profile():
    return ParticipantProfile(
        user_id="user-1",
        interview_id="interview-1",
        user_name="Sam",
        role="Onboarding Manager",
        department="Operations",
        seniority="Senior",
        location="London",
    )


@pytest.fixture
def audit_transcript():
    return [dict(m) for m in AUDIT_TRANSCRIPT]


@pytest.fixture
def client(db_session, completion):
    """Test client backed by the in-memory store and fake completion client."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_report_requester] = lambda: ReportRequester(completion)
    yield TestClient(app)
    app.dependency_overrides.clear()
