"""
Inkwell Backend - Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets a fresh in-memory SQLite database (aiosqlite) with the
       schema created from Base.metadata, a temporary upload directory, and
       services built with a low bcrypt cost.

Fixture Hierarchy:
    db_engine ─▶ session_factory ─▶ db_session
    upload_dir ─▶ file_service ─▶ post_service / user_service
    test_app ─▶ test_client (httpx AsyncClient over ASGITransport)
"""

import os
import tempfile
from typing import AsyncGenerator

# Override settings BEFORE any app imports: app.main builds a module-level app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="inkwell_test_")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.config import Settings
from app.database import Base, get_db_session
from app.main import create_app
from app.models.user import User
from app.services.file_service import FileService, UploadedFile
from app.services.post_service import PostService
from app.services.security import PasswordHasher, TokenService
from app.services.user_service import UserService

TEST_SECRET = "test-secret"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite shared across sessions through a single connection."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def file_service(upload_dir):
    return FileService(str(upload_dir))


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service():
    return TokenService(secret=TEST_SECRET)


@pytest.fixture
def post_service(file_service):
    return PostService(file_service, thumbnail_max_size=2_000_000)


@pytest.fixture
def user_service(file_service, hasher, token_service):
    return UserService(file_service, hasher, token_service, avatar_max_size=500_000)


# ══════════════════════════════════════════════════════════════════════════
# Data Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session, hasher):
    """Factory inserting a user with a real bcrypt hash."""

    async def _make_user(
        name: str = "Ada Writer",
        email: str = "ada@example.com",
        password: str = "secret123",
    ) -> User:
        user = User(name=name, email=email, password=await hasher.hash(password))
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest.fixture
def image():
    """Factory for in-memory uploads of a given size."""

    def _image(filename: str = "cover.png", size: int = 64) -> UploadedFile:
        return UploadedFile(filename=filename, content=b"\x89PNG" + b"x" * max(size - 4, 0))

    return _image


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_app(session_factory, upload_dir):
    config = Settings(
        database_url="sqlite+aiosqlite://",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        upload_dir=str(upload_dir),
        log_level="WARNING",
    )
    application = create_app(config)

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient routed straight into the app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
