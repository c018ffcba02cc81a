"""
Shared pytest fixtures for the store test suite.

Every test gets a fresh in-memory SQLite database (foreign keys enforced) and
a ticking clock, so expiry and listing order are deterministic.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.pool import StaticPool

from database import build_engine, build_session_factory, init_db
from db_client import DBClient


class TickingClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self, start: datetime = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value

    def advance(self, delta: timedelta) -> None:
        self.current += delta


@pytest.fixture
def engine():
    engine = build_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(session_factory, clock):
    return DBClient(session_factory, clock=clock)


@pytest.fixture
def make_user(store):
    """Register a user; key-ready unless ``public_key=None`` is passed."""

    def _make(name: str, public_key: str = "ssh-test-key"):
        user = store.create_user(name, f"{name}@example.com", f"hash-of-{name}")
        if public_key is not None:
            store.set_public_key(user.id, public_key)
        return store.get_user(user_id=user.id)

    return _make


@pytest.fixture
def share(store, clock):
    """Upload a file from ``sender`` to ``recipient`` through the store."""

    def _share(sender, recipient, file_name: str = "report.pdf", password: str = "link-pass",
               expires_in: timedelta = timedelta(hours=1), payload: bytes = b"\x00ciphertext\xff"):
        return store.save_encrypted_file(
            sender_id=sender.id,
            file_name=file_name,
            file_size=len(payload),
            recipient_id=recipient.id,
            password=password,
            expiration=clock.current + expires_in,
            encrypted_key=b"wrapped-aes-key",
            encrypted_payload=payload,
            iv=b"\x01" * 12,
        )

    return _share


@pytest.fixture
def count_rows(session_factory):
    def _count(model) -> int:
        with session_factory() as db:
            return db.query(model).count()

    return _count


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol")
