"""Shared fixtures: a frozen clock, a throwaway SQLite database and blob directory."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from app.config import Settings
from app.database import make_engine, make_sessionmaker
from app.main import create_app
from app.models import Base, FileRecord
from app.services.access_engine import AccessEngine
from app.services.file_storage import FileStorageService
from app.services.hashing import PasswordHasher
from app.services.metadata_store import MetadataStore
from app.services.tokens import TokenService

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
TEST_SECRET = "test-secret"
# Cheap hash so tests don't spend their time in scrypt
FAST_HASH = "pbkdf2:sha256:1000"


class FrozenClock:
    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def tokens():
    return TokenService(TEST_SECRET, ttl_minutes=60)


@pytest.fixture
def hasher():
    return PasswordHasher(FAST_HASH)


@pytest.fixture
def blob_dir(tmp_path):
    return tmp_path / "blobs"


@pytest.fixture
async def sessions(tmp_path):
    db_engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'files.db'}")
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield make_sessionmaker(db_engine)
    await db_engine.dispose()


@pytest.fixture
def store(sessions, clock):
    return MetadataStore(sessions, clock)


@pytest.fixture
def access_engine(clock, tokens, store, blob_dir, hasher):
    return AccessEngine(
        clock=clock,
        tokens=tokens,
        store=store,
        blobs=FileStorageService(blob_dir),
        hasher=hasher,
    )


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        FILE_STORAGE_PATH=str(tmp_path / "api-blobs"),
        TOKEN_SECRET=TEST_SECRET,
        PASSWORD_HASH_METHOD=FAST_HASH,
        RETENTION_SWEEP_SECONDS=0,
    )


@pytest.fixture
def client(test_settings, clock):
    with TestClient(create_app(test_settings, clock)) as c:
        yield c


async def count_files(sessions) -> int:
    async with sessions() as db:
        result = await db.execute(select(func.count()).select_from(FileRecord))
        return result.scalar_one()
