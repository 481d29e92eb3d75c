"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database wired into the app through
dependency overrides, a token service with a test secret, and a low-cost
credential manager so bcrypt does not dominate the run time.
"""

import os
import sys
from collections.abc import AsyncGenerator

# Must be set before app modules read settings
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-only-secret-0123456789abcdef0123456789")

# Repo root on the path so tests can import scripts/
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.security import CredentialManager, get_credential_manager
from app.core.tokens import TokenPayload, TokenService, get_token_service
from app.db.base import Base
from app.db.session import get_db
from app.main import create_application
from app.models import Student, Tutor

TEST_SECRET = "tests-signing-secret-0123456789abcdef0123456789"
DEFAULT_PASSWORD = "TestPass123!"


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret=TEST_SECRET)


@pytest.fixture
def credentials() -> CredentialManager:
    # bcrypt's minimum cost; production uses 12
    return CredentialManager(rounds=4)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def app(session_maker, token_service, credentials):
    app = create_application()

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_service] = lambda: token_service
    app.dependency_overrides[get_credential_manager] = lambda: credentials
    return app


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def make_tutor(db, credentials):
    """Insert a tutor with a properly hashed password."""

    async def _make(
        name: str = "Test Tutor",
        email: str = "tutor@example.com",
        password: str = DEFAULT_PASSWORD,
    ) -> Tutor:
        tutor = Tutor(name=name, email=email, password=await credentials.hash(password))
        db.add(tutor)
        await db.commit()
        await db.refresh(tutor)
        return tutor

    return _make


@pytest.fixture
def make_student(db):
    async def _make(tutor: Tutor, name: str = "Test Student", subject: str = "Math") -> Student:
        student = Student(name=name, subject=subject, contact="010-1234-5678", tutor_id=tutor.id)
        db.add(student)
        await db.commit()
        await db.refresh(student)
        return student

    return _make


@pytest.fixture
def auth_headers(token_service):
    def _headers(tutor: Tutor) -> dict[str, str]:
        token = token_service.issue(TokenPayload(subject_id=tutor.id, email=tutor.email))
        return {"Authorization": f"Bearer {token}"}

    return _headers
