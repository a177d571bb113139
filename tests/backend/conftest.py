"""
Shared fixtures for the Hackathon Registration backend tests.

Every test gets a fresh in-memory SQLite database; the HTTP client runs the
real application against it through httpx's ASGI transport.
"""

import os

# Settings are read once at import time, so configure before importing hackreg
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["MAX_TEAMS"] = "5"
os.environ["ADMIN_EMAIL"] = "admin@hackathon.example.com"
os.environ["ADMIN_PASSWORD"] = "Admin@1234"
os.environ["ADMIN_NAME"] = "Test Admin"
os.environ["JWT_SECRET_USER"] = "test-participant-secret"
os.environ["JWT_SECRET_ADMIN"] = "test-admin-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("REGISTRATION_YEAR", None)
os.environ.pop("API_PREFIX", None)

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hackreg.core.config import get_settings
from hackreg.core.dependencies import get_db_session
from hackreg.main import app
from hackreg.models import Base, User
from hackreg.schemas.team import MemberIn, TeamCreate
from hackreg.services.auth_service import ADMIN, PARTICIPANT, CredentialService, get_password_hash
from hackreg.services.team_service import TeamService
from hackreg.utils.datetime_utils import now


# ============== Data Helpers ==============

def make_member(index: int = 1, **overrides) -> dict:
    """A valid member payload whose email and USN are unique per index."""
    member = {
        "name": "Asha Rao",
        "email": f"member{index}@example.com",
        "phone": "9876543210",
        "branch": "Computer Science",
        "usn": f"1AB20CS{index:03d}",
        "semester": "5",
        "college": "ABC College",
    }
    member.update(overrides)
    return member


def make_team_payload(team_name: str = "Byte Busters", start: int = 1, size: int = 1, **overrides) -> dict:
    payload = {
        "teamName": team_name,
        "members": [make_member(start + offset) for offset in range(size)],
    }
    payload.update(overrides)
    return payload


def make_team_create(team_name: str = "Byte Busters", start: int = 1, size: int = 1, **overrides) -> TeamCreate:
    return TeamCreate.model_validate(make_team_payload(team_name, start, size, **overrides))


def make_member_in(index: int = 1, **overrides) -> MemberIn:
    return MemberIn.model_validate(make_member(index, **overrides))


# ============== Database ==============

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def team_service(db_session, settings):
    return TeamService(db_session, settings)


@pytest.fixture
def credential_service(db_session, settings):
    return CredentialService(db_session, settings)


# ============== Accounts ==============

@pytest.fixture
async def participant(db_session):
    user = User(
        name="Asha Rao",
        email="asha@example.com",
        password_hash=get_password_hash("Str0ng!Pass"),
        role=PARTICIPANT,
        last_login=now(),
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def other_participant(db_session):
    user = User(
        name="Ravi Kumar",
        email="ravi@example.com",
        password_hash=get_password_hash("Str0ng!Pass"),
        role=PARTICIPANT,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def participant_token(participant, credential_service):
    return credential_service.issue_token(str(participant.id), PARTICIPANT)


@pytest.fixture
def admin_token(credential_service):
    return credential_service.issue_token("admin", ADMIN)


@pytest.fixture
def participant_headers(participant_token):
    return {"Authorization": f"Bearer {participant_token}"}


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


# ============== HTTP ==============

@pytest.fixture
async def client(session_factory):
    async def override_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
