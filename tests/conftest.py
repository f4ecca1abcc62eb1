import asyncio
import os
import tempfile

import pytest
import pytest_asyncio

# Point the app at throwaway storage before any forum module reads settings
_TMP_DIR = tempfile.mkdtemp(prefix="forum-tests-")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(_TMP_DIR, "forum-test.db")
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["SESSION_COOKIE_SECURE"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

from forum.core.db import Base, async_session_factory, engine  # noqa: E402
from forum.main import app  # noqa: E402


async def reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture(autouse=True)
def suppress_logging(monkeypatch):
    """Lower logging during tests to reduce noise."""
    import logging
    logging.getLogger().setLevel(logging.WARNING)
    yield


@pytest_asyncio.fixture
async def db():
    """Fresh schema and an async session on the test database."""
    await reset_database()
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def client():
    """TestClient on a fresh database; startup seeds the admin and categories."""
    asyncio.run(reset_database())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_client(client):
    """Extra clients with their own cookie jars, sharing the same app."""
    def _make():
        return TestClient(app)
    return _make


@pytest.fixture
def register():
    """POST /api/register on the given client."""
    def _register(c, username, email=None, password="secret123"):
        return c.post(
            "/api/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )
    return _register
