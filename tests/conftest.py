"""
Shared fixtures.

HTTP tests run the real application against an in-memory SQLite database
with background notifications disabled, so every email is delivered inline
to a RecordingTransport before the response is returned.
"""

from dataclasses import dataclass
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from admissions_portal.core.auth import SessionIdentity
from admissions_portal.core.config import load_settings
from admissions_portal.core.errors import NotificationError
from admissions_portal.core.security import hash_password
from admissions_portal.main import create_app
from admissions_portal.modules.auth.service import issue_session_token
from admissions_portal.modules.catalog.models import Program, University
from admissions_portal.modules.users.models import User, UserRole
from admissions_portal.modules.users.repository import UserRepository

PASSWORD = "correct-horse-battery"
PASSWORD_HASH = hash_password(PASSWORD)


@dataclass
class SentEmail:
    to: str
    subject: str
    html: str


class RecordingTransport:
    """EmailTransport that keeps every message; can be told to fail."""

    def __init__(self):
        self.sent: list[SentEmail] = []
        self.fail_all = False
        self.fail_for: set[str] = set()

    async def send(self, to_email: str, subject: str, html_content: str) -> None:
        if self.fail_all or to_email in self.fail_for:
            raise NotificationError(f"Failed to send email to {to_email}: provider down")
        self.sent.append(SentEmail(to_email, subject, html_content))

    def recipients(self) -> list[str]:
        return [email.to for email in self.sent]

    def to(self, address: str) -> list[SentEmail]:
        return [email for email in self.sent if email.to == address]


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def make_identity():
    """Factory for SessionIdentity values used by unit tests."""

    def _make_identity(
        role: UserRole, user_id: int = 1, active: bool = True, username: str | None = None
    ) -> SessionIdentity:
        return SessionIdentity(
            id=user_id,
            role=role,
            active=active,
            username=username or f"{role.value}{user_id}@example.com",
        )

    return _make_identity


@pytest.fixture
def user_password() -> str:
    """Plain-text password of every user created by make_user."""
    return PASSWORD


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def settings_overrides() -> dict:
    """Override in a test module to tune settings (e.g. rate limits)."""
    return {}


@pytest.fixture
def settings(settings_overrides):
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "session_secret": "test-session-secret-0123456789abcdef",
        "python_env": "test",
        "redis_url": None,
        "resend_api_key": None,
        "background_notifications": False,
        "frontend_url": "https://portal.example.com",
        "log_level": "WARNING",
    }
    values.update(settings_overrides)
    return load_settings(**values)


@pytest.fixture
async def app(settings, transport):
    app = create_app(settings, email_transport=transport)
    context = app.state.context
    await context.startup()
    await context.database.create_all()
    yield app
    await context.shutdown()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def make_user(app):
    """Factory inserting a user directly; every user gets PASSWORD."""

    async def _make_user(
        username: str,
        role: UserRole = UserRole.AGENT,
        *,
        active: bool = True,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        async with app.state.context.database.session() as db:
            user = await UserRepository.create(
                db,
                username=username,
                password_hash=PASSWORD_HASH,
                role=role,
                active=active,
                first_name=first_name,
                last_name=last_name,
            )
            await db.commit()
            return user

    return _make_user


@pytest.fixture
def auth_headers(settings):
    """Bearer headers for a seeded user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_session_token(user, settings)}"}

    return _headers


@pytest.fixture
async def admin(make_user):
    return await make_user("admin@nextwave.ae", UserRole.ADMIN, first_name="Amira", last_name="Admin")


@pytest.fixture
async def sub_admin(make_user):
    return await make_user("reviewer@nextwave.ae", UserRole.SUB_ADMIN, first_name="Rami")


@pytest.fixture
async def agent(make_user):
    return await make_user("agent@agency.com", UserRole.AGENT, first_name="Sara", last_name="Agent")


@pytest.fixture
async def other_agent(make_user):
    return await make_user("other@agency.com", UserRole.AGENT)


@pytest.fixture
async def student(make_user):
    return await make_user("learner@example.com", UserRole.STUDENT, first_name="Lina")


@pytest.fixture
async def program(app) -> Program:
    async with app.state.context.database.session() as db:
        university = University(name="Khalifa University", location="Abu Dhabi", image_url="")
        db.add(university)
        await db.flush()
        program = Program(
            name="MSc Data Science",
            university_id=university.id,
            tuition="AED 90,000",
            duration="2 years",
            intake="September",
            degree="Masters",
            study_field="Computer Science",
            requirements=["Bachelor's degree", "IELTS 6.5"],
            has_scholarship=True,
            image_url="",
        )
        db.add(program)
        await db.commit()
        return program


@pytest.fixture
def application_payload(program) -> dict:
    """camelCase body for POST /api/applications."""
    return {
        "programId": program.id,
        "studentFirstName": "Omar",
        "studentLastName": "Haddad",
        "studentEmail": "omar.haddad@example.com",
        "studentNationality": "Jordanian",
        "highestQualification": "BSc Computer Science",
        "graduationYear": 2023,
    }
