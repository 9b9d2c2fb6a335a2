"""
VIP Travel API - Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the test suite.
How:   Every test gets its own SQLite database file (aiosqlite) with all
       tables created, an initialized AssetStore bound to it, and, for
       endpoint tests, an httpx AsyncClient over ASGITransport whose
       session dependency points at the same database.

Fixture Hierarchy (all function-scoped):
    engine
    ├── session_factory ── db_session
    └── asset_store (chunk_size=1024, so a 10KB image spans several chunks)
        └── client (create_app(store=asset_store, connection=...))
"""

import base64
import os
import tempfile

# Settings are read at import time: point them at throwaway values first
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='vipapi_test_')}/unused.db"
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MAX_UPLOAD_SIZE"] = "65536"
os.environ["REFERENCE_STRICTNESS"] = "last_writer_wins"

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import vipapi.models  # noqa: E402,F401
from vipapi.database import Base, DatabaseConnection, get_db_session  # noqa: E402
from vipapi.services.asset_store import AssetStore  # noqa: E402

# 1x1 transparent PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

# Smallest JPEG libmagic recognizes: SOI + JFIF APP0 + EOI
JPEG_MINIMAL = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    b"\xff\xd9"
)


def png_of_size(size: int, fill: bytes = b"\x00") -> bytes:
    """A PNG header followed by padding, `size` bytes in total."""
    return PNG_1X1 + fill * (size - len(PNG_1X1))


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vipapi.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Asset Store
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def asset_store(engine) -> AssetStore:
    """An initialized store with small chunks."""
    store = AssetStore(engine, readiness=lambda: True, bucket_name="images", chunk_size=1024)
    assert await store.initialize()
    return store


@pytest.fixture
def png_bytes():
    """10KB PNG."""
    return png_of_size(10 * 1024)


@pytest.fixture
def other_png_bytes():
    """A second, different 10KB PNG."""
    return png_of_size(10 * 1024, fill=b"\x01")


@pytest.fixture
def jpeg_bytes():
    return JPEG_MINIMAL


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def app(engine, session_factory, asset_store):
    from vipapi.main import create_app

    application = create_app(store=asset_store, connection=DatabaseConnection(engine))

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_session
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
