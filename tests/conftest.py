"""Shared test fixtures for the Fitcoin test suite."""

import random
from datetime import date, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.core.database import Base
# Import all models so their metadata is registered on Base
import app.models.database  # noqa: F401
import app.models.sync_log  # noqa: F401
from app.services.catalog import build_catalog
from app.services.cooldown import CooldownGate
from app.services.generator import ActivityGenerator
from app.services.jobs import SyncJobService, SyncJobStore
from app.services.ledger import AccrualLedger

TEST_DATE = date(2025, 1, 28)
TEST_NOW = datetime(2025, 1, 28, 8, 0)


class FakeClock:
    """Settable stand-in for a clock or calendar callable."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture
async def async_session():
    """
    Provide an in-memory SQLite async session for tests.

    Creates all tables before the test, drops them after. Each test gets
    a clean database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock(TEST_NOW)


@pytest.fixture
def calendar():
    return FakeClock(TEST_DATE)


@pytest.fixture
def ledger(calendar):
    return AccrualLedger(today_fn=calendar, rng=random.Random(7))


@pytest.fixture
def cooldown(clock):
    return CooldownGate(3600, clock=clock)


@pytest.fixture
def generator():
    return ActivityGenerator(build_catalog(), rng=random.Random(42))


@pytest.fixture
def sync_service(generator, ledger, cooldown, clock):
    return SyncJobService(
        store=SyncJobStore(max_jobs=50),
        generator=generator,
        ledger=ledger,
        cooldown=cooldown,
        progress_step=34,
        timeout_seconds=300,
        retention_seconds=3600,
        clock=clock,
    )
