import datetime

import pytest

from unsub.app import create_app
from unsub.config import Settings
from unsub.errors import SendFailure, StoreFailure, Unauthorized
from unsub.tokens import TokenCodec

SECRET = "test-secret-with-enough-bytes-for-hs256"
OPERATOR_TOKEN = "operator-id-token"


class InMemoryStore:
    """Dict-backed stand-in for UnsubscribeStore."""

    def __init__(self):
        self.records = {}
        self.fail_with = None

    def get(self, email):
        if self.fail_with:
            raise StoreFailure(self.fail_with)
        return self.records.get(email)

    def put(self, record):
        if self.fail_with:
            raise StoreFailure(self.fail_with)
        self.records[record.email] = record


class RecordingMailer:
    """Captures sent messages; fails for addresses listed in ``failing``."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []
        self.attempts = []

    def send(self, message):
        self.attempts.append(message.recipient)
        if message.recipient in self.failing:
            raise SendFailure("mailbox unavailable")
        self.sent.append(message)


class StaticVerifier:
    """Accepts exactly one bearer token."""

    def authenticate(self, authorization):
        if authorization != f"Bearer {OPERATOR_TOKEN}":
            raise Unauthorized()
        return {"sub": "operator-1", "email": "operator@example.com"}


@pytest.fixture
def settings():
    return Settings(
        jwt_secret=SECRET,
        sender_email="noreply@example.com",
        api_domain="api.unsub.test",
        web_domain="unsub.test",
        unsubscribe_mailbox="unsubscribe@unsub.test",
        email_domains=["one.test", "two.test", "three.test", "four.test"],
    )


@pytest.fixture
def codec():
    return TokenCodec(SECRET)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(settings, store, mailer):
    app = create_app(settings, store=store, mailer=mailer, identity_verifier=StaticVerifier())
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def fixed_now():
    return datetime.datetime(2025, 3, 14, 9, 26, 53, tzinfo=datetime.timezone.utc)
