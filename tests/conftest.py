# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest fixtures. Tests run against in-memory SQLite and an in-memory object store."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("STORAGE_BACKEND", "s3")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mymusicapi_server.config import settings
from mymusicapi_server.database import get_db
from mymusicapi_server.errors import StorageError
from mymusicapi_server.main import app
from mymusicapi_server.models import Base, Track, TrackTag
from mymusicapi_server.services.storage import ObjectStore, get_object_store

ADMIN_PASSWORD = "abc"


class FakeObjectStore(ObjectStore):
    """Keeps blobs in a dict. Set fail_deletes to simulate a storage outage on delete."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail_deletes = False

    def public_url(self, key: str) -> str:
        return f"https://storage.test/music/{key}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        self.objects[key] = data
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        if self.fail_deletes:
            raise StorageError("Storage delete failed: simulated outage")
        self.objects.pop(key, None)

    async def presign_upload(self, key: str, content_type: str) -> str:
        return f"https://storage.test/upload/{key}?signature=test"


async def _make_engine(tables=None):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=tables)
    return engine


@pytest.fixture
def static_password(monkeypatch):
    monkeypatch.setattr(settings, "admin_password", ADMIN_PASSWORD)
    return ADMIN_PASSWORD


@pytest.fixture
async def engine():
    engine = await _make_engine()
    yield engine
    await engine.dispose()


@pytest.fixture
async def engine_without_settings_table():
    engine = await _make_engine(tables=[Track.__table__, TrackTag.__table__])
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def object_store():
    return FakeObjectStore()


def _override_db(maker):
    async def _get_db():
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _get_db


@pytest.fixture
async def client(session_maker, object_store, static_password):
    app.dependency_overrides[get_db] = _override_db(session_maker)
    app.dependency_overrides[get_object_store] = lambda: object_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def client_without_settings_table(engine_without_settings_table, object_store, static_password):
    maker = async_sessionmaker(engine_without_settings_table, class_=AsyncSession, expire_on_commit=False)
    app.dependency_overrides[get_db] = _override_db(maker)
    app.dependency_overrides[get_object_store] = lambda: object_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(static_password):
    return {"x-admin-password": static_password}


@pytest.fixture
def upload_track(client, admin_headers):
    """Record a track through the metadata-only upload endpoint and return its JSON."""

    async def _upload(title: str, tags="", file_name: str | None = None, **extra):
        file_name = file_name or f"{title.lower().replace(' ', '-')}.mp3"
        body = {
            "title": title,
            "file_name": file_name,
            "file_url": f"https://storage.test/music/{file_name}",
            "tags": tags,
            "file_size": 1024,
            "mime_type": "audio/mpeg",
        }
        body.update(extra)
        r = await client.post("/upload", json=body, headers=admin_headers)
        assert r.status_code == 201, r.text
        return r.json()["track"]

    return _upload
