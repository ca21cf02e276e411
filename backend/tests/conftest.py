"""
Scan Barang Backend — Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Route tests need a real (throwaway) database, an isolated storage
       root and a way to act as a given owner without Firebase.
How:   Each test gets its own SQLite file (aiosqlite) with the schema and
       the status/brand seed rows; the app's DB and auth dependencies are
       overridden to point at it.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:     SQLite engine in tmp_path, schema created, seeded
    ├── session_factory / db_session: sessions bound to db_engine
    ├── storage:       FileService rooted in tmp_path (patched into ItemService)
    ├── png_bytes / jpeg_bytes: real images rendered by Pillow
    └── client:        HTTPX AsyncClient on the ASGI app

Acting as an owner:
    The bearer token IS the owner key in tests:
        headers={"Authorization": "Bearer owner-a"}  →  owner_key "owner-a"
"""

import io
import os
import tempfile
from typing import Optional

# Settings are read at import time; point them somewhere harmless first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="scanbarang_db_"), "unused.db"
)
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="scanbarang_test_")
os.environ["FIREBASE_CREDENTIALS"] = ""
os.environ["FIREBASE_API_KEY"] = ""
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASS"] = ""
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

import pytest
import pytest_asyncio
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from scanbarang.database import Base, get_db_session
from scanbarang.exceptions import UnauthenticatedError
from scanbarang.middleware.auth import bearer_scheme, require_owner_key
from scanbarang.models import Brand, Status
from scanbarang.services.file_service import FileService

OWNER_A = {"Authorization": "Bearer owner-a"}
OWNER_B = {"Authorization": "Bearer owner-b"}

SEED_STATUSES = [
    {"id_status": 1, "nama_status": "Selesai"},
    {"id_status": 2, "nama_status": "Dipakai"},
]
SEED_BRANDS = [{"name": "Sony"}, {"name": "Canon"}, {"name": "Epson"}]


def make_image_bytes(fmt: str = "PNG", size=(32, 32), color=(200, 30, 30)) -> bytes:
    """A real, decodable image in the given Pillow format."""
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    A fresh SQLite database per test with every table created and the
    reference rows the services look up by name.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(Status.__table__.insert(), SEED_STATUSES)
        await conn.execute(Brand.__table__.insert(), SEED_BRANDS)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A session for arranging or inspecting rows directly."""
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Storage & Uploads
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def storage(tmp_path, monkeypatch):
    """
    An isolated FileService, swapped in for the one ItemService uses.

    What:    Files written by item routes land under tmp_path/storage.
    """
    service = FileService(str(tmp_path / "storage"))
    service.ensure_directories()
    monkeypatch.setattr("scanbarang.services.item_service.file_service", service)
    return service


@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG")


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

async def _token_as_owner_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials.strip():
        raise UnauthenticatedError()
    return credentials.credentials.strip()


@pytest_asyncio.fixture
async def client(session_factory, storage):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    How:  get_db_session → the per-test SQLite database (same commit/rollback
          contract); require_owner_key → the bearer token as owner key.

    Usage:
        async def test_list(client):
            response = await client.get("/api/barang", headers=OWNER_A)
    """
    from scanbarang.main import app

    async def _test_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_db_session
    app.dependency_overrides[require_owner_key] = _token_as_owner_key

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
