import os

# Settings are read at import time, so the test environment goes first
os.environ["APP_DATABASE__DATABASE_URL"] = "sqlite://"
os.environ["APP_DATABASE__CREATE_TABLES"] = "false"
os.environ["APP_CACHE__ENABLED"] = "false"
os.environ["APP_SCHEDULER__ENABLED"] = "false"
os.environ["APP_NOTIFICATIONS__BACKEND"] = "log"

import datetime as dt
from typing import Generator, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import reminder_app.models  # noqa: F401
from reminder_app.api.v1.dependencies import get_sender
from reminder_app.core.constants import Role
from reminder_app.core.security import security_manager
from reminder_app.db.base import Base
from reminder_app.db.session import get_db
from reminder_app.domain.interfaces.infrastructure_interfaces import (
    DeliveryResult,
    INotificationSender,
)
from reminder_app.main import app
from reminder_app.models.event_model import Event
from reminder_app.models.user_model import User
from reminder_app.utils.clock import utc_now


# One shared in-memory database; StaticPool keeps a single connection alive
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
)


class RecordingSender(INotificationSender):
    """In-memory sender that records deliveries and fails on request."""

    def __init__(self):
        self.delivered: List[Tuple[str, str, str]] = []
        self.fail_for: set = set()

    def render(self, event: Event) -> str:
        return f"{event.title} on {event.event_date.isoformat()}"

    def deliver(self, address: str, subject: str, content: str) -> DeliveryResult:
        if address in self.fail_for:
            return DeliveryResult.failure("mailbox unavailable")
        self.delivered.append((address, subject, content))
        return DeliveryResult.success()


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture(scope="function")
def client(db_session: Session, sender: RecordingSender) -> Generator[TestClient, None, None]:
    """Create a test client with database session and sender overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sender] = lambda: sender
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def create_user(db_session: Session, email: str, role: Role = Role.USER) -> User:
    user = User(email=email, role=role, enabled=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def create_event(
    db_session: Session,
    owner: User,
    title: str = "Dentist",
    reminder_time: Optional[dt.datetime] = None,
    event_date: Optional[dt.date] = None,
    description: Optional[str] = None,
    reminder_sent: bool = False,
) -> Event:
    reminder_time = reminder_time or utc_now() - dt.timedelta(minutes=1)
    event = Event(
        user_id=owner.id,
        title=title,
        description=description,
        event_date=event_date or reminder_time.date(),
        reminder_time=reminder_time,
        reminder_sent=reminder_sent,
        reminder_sent_time=reminder_time if reminder_sent else None,
    )
    db_session.add(event)
    db_session.commit()
    db_session.refresh(event)
    return event


def bearer(user: User) -> dict:
    token = security_manager.create_access_token(user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_user(db_session: Session) -> User:
    return create_user(db_session, "alice@example.com")


@pytest.fixture
def other_user(db_session: Session) -> User:
    return create_user(db_session, "bob@example.com")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return create_user(db_session, "admin@example.com", Role.ADMIN)


@pytest.fixture
def auth_headers(sample_user: User) -> dict:
    """Create authentication headers for testing."""
    return bearer(sample_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Create admin authentication headers for testing."""
    return bearer(admin_user)


@pytest.fixture
def make_user(db_session: Session):
    def _make(email: str, role: Role = Role.USER) -> User:
        return create_user(db_session, email, role)

    return _make


@pytest.fixture
def make_event(db_session: Session):
    def _make(owner: User, **kwargs) -> Event:
        return create_event(db_session, owner, **kwargs)

    return _make


@pytest.fixture
def headers_for():
    return bearer
