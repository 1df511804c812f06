"""Shared test configuration and fixtures for EventHub tests"""

import logging
import os
import subprocess
import sys
from pathlib import Path

# Settings must be in place before eventhub.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine
from testcontainers.postgres import PostgresContainer

import eventhub.models  # noqa: F401
from eventhub.auth.dependencies import get_current_user
from eventhub.auth.models import AuthUser
from eventhub.auth.passwords import hash_password
from eventhub.main import app
from eventhub.models.database import get_db
from eventhub.models.event import EventMode
from eventhub.models.user import Role
from eventhub.services.auth_service import AuthService
from eventhub.services.company_service import CompanyService
from eventhub.services.email_service import EmailService, get_email_service
from eventhub.services.event_service import AttachmentIn, EventCreate, EventService
from eventhub.services.lifecycle_service import LifecycleService
from eventhub.services.participation_service import ParticipationService
from eventhub.services.user_service import UserService, create_user_with_profile
from tests.config import test_config
from tests.helpers import future_window

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session")
def db_engine():
    """Engine for the test session.

    In-memory SQLite by default; a PostgreSQL container migrated with Alembic
    when TEST_WITH_POSTGRES is set.
    """
    if test_config["use_postgres"]:
        with PostgresContainer("postgres:16") as postgres:
            database_url = postgres.get_connection_url()
            _run_migrations(database_url)
            engine = create_engine(database_url)
            yield engine
            engine.dispose()
    else:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        SQLModel.metadata.create_all(engine)
        yield engine
        engine.dispose()


def _run_migrations(database_url: str):
    """Run Alembic migrations on the test database"""

    # Project root (where alembic.ini is located)
    root_dir = Path(__file__).parent.parent
    alembic_ini = root_dir / "alembic.ini"

    env = os.environ.copy()
    env["DATABASE_URL"] = database_url

    result = subprocess.run(
        [sys.executable, "-m", "alembic", "-c", str(alembic_ini), "upgrade", "head"],
        cwd=root_dir,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )

    if result.returncode != 0:
        logger.error(f"Alembic migration failed: {result.stderr}")
        raise RuntimeError(f"Failed to run migrations: {result.stderr}")
    logger.info("Database schema setup completed successfully")


@pytest.fixture
def _db_session(db_engine):
    """Private DB session for fixtures only.

    Do not use this fixture directly in tests. Prefer the service fixtures
    below. Every table is emptied after the test.
    """
    session = Session(db_engine)

    yield session

    session.rollback()
    for table in reversed(SQLModel.metadata.sorted_tables):
        session.exec(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing emails and short-circuit sending"""
    sent = []

    async def fake_send_email(self, to_email, email_content):
        sent.append(
            {
                "to": to_email,
                "subject": email_content.get("subject"),
                "body": email_content.get("body", ""),
                "html": email_content.get("html", ""),
            }
        )
        return True

    monkeypatch.setattr(EmailService, "_send_email", fake_send_email, raising=True)
    return sent


@pytest.fixture
def failing_email(monkeypatch):
    """Make every email send report failure"""

    async def fake_send_email(self, to_email, email_content):
        return False

    monkeypatch.setattr(EmailService, "_send_email", fake_send_email, raising=True)


@pytest.fixture
def email_service():
    return EmailService(test_config)


@pytest.fixture
def event_service(_db_session):
    return EventService(_db_session)


@pytest.fixture
def participation_service(_db_session, email_service):
    return ParticipationService(_db_session, email_service)


@pytest.fixture
def lifecycle_service(_db_session):
    return LifecycleService(_db_session)


@pytest.fixture
def auth_service(_db_session, email_service):
    return AuthService(_db_session, email_service)


@pytest.fixture
def user_service(_db_session):
    return UserService(_db_session)


@pytest.fixture
def company_service(_db_session, email_service):
    return CompanyService(_db_session, email_service)


@pytest.fixture
def make_user(_db_session):
    """Create a user with its role profile; returns the AuthUser identity"""
    counter = {"n": 0}

    def _make_user(
        role: Role = Role.PARTICIPANT,
        email: str = None,
        name: str = None,
        password: str = "secret-password",
    ) -> AuthUser:
        counter["n"] += 1
        email = email or f"{role.value.lower()}{counter['n']}@example.com"
        user = create_user_with_profile(
            _db_session,
            email=email,
            name=name or f"{role.value.title()} {counter['n']}",
            role=role,
            password_hash=hash_password(password),
        )
        _db_session.commit()
        return AuthUser(id=user.id, email=user.email, role=user.role)

    return _make_user


@pytest.fixture
def organizer(make_user, company_service):
    """An ORGANIZER who owns a company; returns (AuthUser, company_id)"""
    user = make_user(Role.ORGANIZER, name="Olivia Organizer")
    company = company_service.create_company("Acme Events", "Meetups", user)
    return user, company["id"]


@pytest.fixture
def make_event(event_service, organizer):
    """Create an event owned by the ``organizer`` fixture; returns its dict"""

    def _make_event(**overrides):
        start, end = future_window()
        organizer_user, company_id = organizer
        data = {
            "title": "Python Meetup",
            "description": "Monthly talks and pizza",
            "category": "Meetup",
            "mode": EventMode.ONSITE,
            "venue": "Hall 3",
            "contact_info": "+1 555 0100",
            "start_date": start,
            "end_date": end,
            "company_id": company_id,
            "attachments": [AttachmentIn(url="https://cdn.example.com/poster.png")],
        }
        data.update(overrides)
        return event_service.create_event(EventCreate(**data), organizer_user)

    return _make_event


@pytest.fixture
def client(_db_session, email_service):
    """Test client on the test database; authentication uses real tokens"""
    original_overrides = app.dependency_overrides.copy()

    def get_test_db():
        return _db_session

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_email_service] = lambda: email_service

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)


@pytest.fixture
def authenticated_client(organizer, client):
    """Test client that bypasses authentication as the ``organizer`` user"""
    test_user, _ = organizer

    async def mock_get_current_user():
        return test_user

    app.dependency_overrides[get_current_user] = mock_get_current_user

    yield client, test_user
