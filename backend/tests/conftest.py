"""
Pytest fixtures for the schema registry.

Each test gets its own SQLite database file and storage directory under
tmp_path, so tests never share metadata or schema files.
"""

import os

# Settings are read at import time; point them at throwaway locations
# before anything from registry is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./registry_test.db")
os.environ.setdefault("SCHEMA_STORAGE_PATH", "./schema_storage_test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from registry.database import get_db
from registry.main import app
from registry.models import Base
from registry.services.file_storage import FileStorageService, get_file_storage
from registry.services.schema_versioning import SchemaVersioningService
from registry.services.scope_locks import ScopeLockRegistry


# ==================== DATABASE ====================


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'registry.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ==================== SERVICES ====================


@pytest.fixture
def storage(tmp_path):
    return FileStorageService(str(tmp_path / "schema_storage"))


@pytest.fixture
def locks():
    return ScopeLockRegistry()


@pytest.fixture
def schema_service(db, storage, locks):
    return SchemaVersioningService(db, storage, locks=locks, strict=True)


# ==================== API CLIENT ====================


@pytest_asyncio.fixture
async def client(session_factory, storage):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()
