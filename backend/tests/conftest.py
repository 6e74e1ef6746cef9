"""
Pytest configuration and fixtures for the backend tests.
"""
import os
import tempfile

# Settings are read at import time, so the environment goes first
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="goldcollar-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["USE_MONGO"] = "false"
os.environ["RESEND_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""

import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.security import create_access_token
from db.base import Base
from db.session import get_db_session
from schemas.auth_schema import AdminUser
from helpers import make_admin


@pytest.fixture
async def test_engine():
    """In-memory SQLite shared by every connection of one test."""
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
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client bound to the test session."""
    def override_get_db():
        return db_session

    app.dependency_overrides[get_db_session] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> AdminUser:
    return await make_admin(db_session)


@pytest.fixture
def admin_headers(admin_user: AdminUser) -> dict:
    token = create_access_token({"sub": admin_user.email, "admin_id": admin_user.admin_id, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def mock_send_otp_email():
    """Capture outgoing OTP emails instead of delivering them."""
    with patch("services.password_reset_service.send_otp_email", new=AsyncMock(return_value=True)) as mocked:
        yield mocked


@pytest.fixture
def mock_mongo_db():
    """Mock MongoDB database for the Mongo code paths."""
    mock_db = MagicMock()
    for name in ("admin_users", "password_reset_otps", "site_settings"):
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=None)
        collection.insert_one = AsyncMock()
        collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1, matched_count=1))
        setattr(mock_db, name, collection)
    return mock_db
