"""
Pytest fixtures for the tracker server.

Each test gets its own in-memory SQLite database and event bus.
"""

import os

# Environment must be set before cooperloc settings are loaded
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from cooperloc.core import get_password_hash, create_session_token
from cooperloc.core.session import AuthEventBus, SessionContext
from cooperloc.database import Base, get_db
from cooperloc.main import app
from cooperloc.models import (
    AuthUser,
    Franchise,
    Profile,
    Tracker,
    TrackerStatus,
    UserRole,
    UserStatus,
)

PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
async def engine():
    """Fresh in-memory database."""
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
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    """Database session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def events():
    return AuthEventBus()


@pytest.fixture
async def client(session_factory, events):
    """HTTP client wired to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.state.auth_events = events

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_franchise(session_factory):
    """Create a franchise directly in the database."""

    async def create(name="Franquia Centro", state="SP", active=True, **fields):
        async with session_factory() as session:
            franchise = Franchise(name=name, state=state, active=active, **fields)
            session.add(franchise)
            await session.commit()
            return franchise

    return create


@pytest.fixture
def make_user(session_factory):
    """Create auth user + profile and return a dict with a valid session token."""
    counter = {"n": 0}

    async def create(role=UserRole.ADMIN, status=UserStatus.ACTIVE, franchise_id=None, email=None,
                     full_name="Usuário Teste"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@cooperloc.com.br"
        async with session_factory() as session:
            user = AuthUser(email=email, hashed_password=PASSWORD_HASH)
            session.add(user)
            await session.flush()
            session.add(Profile(
                id=user.id,
                email=email,
                full_name=full_name,
                role=UserRole(role).value,
                status=UserStatus(status).value,
                franchise_id=franchise_id,
            ))
            await session.commit()

        token = create_session_token(user.id, user.session_version)
        return {
            "id": user.id,
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return create


@pytest.fixture
def make_tracker(session_factory):
    """Create a tracker directly in the database, bypassing the lifecycle."""

    async def create(serial_number, status=TrackerStatus.ESTOQUE, franchise_id=None, **fields):
        async with session_factory() as session:
            tracker = Tracker(
                serial_number=serial_number,
                status=TrackerStatus(status).value,
                franchise_id=franchise_id,
                **fields
            )
            session.add(tracker)
            await session.commit()
            return tracker

    return create


@pytest.fixture
async def session_for(db, events):
    """Build an initialized SessionContext for a user id."""
    opened = []

    async def build(user_id):
        session = SessionContext(db, events, user_id)
        await session.init()
        opened.append(session)
        return session

    yield build

    for session in opened:
        await session.close()
