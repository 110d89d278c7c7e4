"""Pytest configuration and fixtures for portal tests."""

from datetime import date
from unittest.mock import AsyncMock
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from portal.config import Settings, get_settings
from portal.database import get_db, init_models, make_engine
from portal.main import app
from portal.models.doctor import VerifiedDoctor
from portal.services.mapping_store import MappingStore


class SequenceRandom:
    """Stands in for random.Random; replays suffixes and repeats the last one."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    def randint(self, a, b):
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        assert a <= value <= b
        return value


@pytest.fixture
def settings():
    """Settings isolated from the environment for testing."""
    return Settings(
        database_url="sqlite+aiosqlite://",
        jwt_secret_key="test-secret",
        identifier_attempts=10,
        registration_retries=1,
        recaptcha_api_key="",
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so separate sessions behave like separate clients."""
    bind = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'portal-test.db'}")
    await init_models(bind)
    yield bind
    await bind.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_store():
    """Mapping store double with nothing registered."""
    store = AsyncMock(spec=MappingStore)
    store.exists.return_value = False
    store.lookup.return_value = None
    return store


@pytest_asyncio.fixture
async def verified_doctor(db):
    row = VerifiedDoctor(national_id="556677889900", license_id="MCI-20931", date_of_birth=date(1980, 4, 2))
    db.add(row)
    await db.commit()
    return row


@pytest_asyncio.fixture
async def client(session_factory, settings):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
