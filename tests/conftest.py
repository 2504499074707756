#!/usr/bin/env python3
"""
Shared pytest configuration and fixtures for the agenda test suite.
"""

import asyncio
import os
import sys
import time
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Settings are read once at import; point them at SQLite before any agenda import
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("PRACTICE_OWNER_ID", "default")

from agenda.db.base import init_db  # noqa: E402
from agenda.db.models.patient import Patient  # noqa: E402
from agenda.db.models.practice_settings import PracticeSettings  # noqa: E402


SEEDED_PRICES = {
    "standard_invoice": Decimal("40"),
    "standard_cash": Decimal("35"),
    "machine_invoice": Decimal("25"),
    "machine_cash": Decimal("20"),
}


async def _seed(session: AsyncSession) -> None:
    session.add(PracticeSettings(owner_id="default", auto_apply_prices=True, **SEEDED_PRICES))
    session.add(Patient(id="p1", first_name="Maria", last_name="Rossi", phone="0776 123 4567"))
    session.add(Patient(id="p2", first_name="Luca", last_name="Bianchi", phone=None))
    await session.commit()


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared by every session of one test."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(bind=eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with factory() as session:
        await _seed(session)
        yield session


@pytest.fixture
def client(tmp_path):
    """TestClient over a file-backed SQLite database, session dependency overridden."""
    from fastapi.testclient import TestClient
    from agenda.db.session import get_session
    from agenda.main import app

    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'agenda.db'}", poolclass=NullPool)
    factory = async_sessionmaker(eng, expire_on_commit=False, class_=AsyncSession)

    async def _prepare():
        await init_db(bind=eng)
        async with factory() as session:
            await _seed(session)

    asyncio.run(_prepare())

    async def _session_override():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    asyncio.run(eng.dispose())


@pytest.fixture
def practice_settings():
    """Flat settings mapping as the crud layer hands it to the pricing resolver."""
    return {**SEEDED_PRICES, "auto_apply_prices": True}


@pytest.fixture(autouse=True)
def monitor_test_performance(request):
    """Warn about tests that are slower than their marker allows"""
    start_time = time.time()
    yield
    duration = time.time() - start_time

    node = request.node
    if node.get_closest_marker("smoke") and duration > 1.0:
        print(f"Smoke test {node.name} took {duration:.2f}s (should be < 1s)")
    elif node.get_closest_marker("unit") and duration > 1.0:
        print(f"Unit test {node.name} took {duration:.2f}s (should be < 1s)")


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "smoke: Quick validation tests")
    config.addinivalue_line("markers", "essential: Core scheduling behaviour")
    config.addinivalue_line("markers", "slow: Long-running tests")
    config.addinivalue_line("markers", "integration: Tests against a real (sqlite) database")
    config.addinivalue_line("markers", "unit: Pure unit tests with no external dependencies")


def pytest_collection_modifyitems(config, items):
    """Run smoke tests first and slow ones last"""
    def test_priority(item):
        if item.get_closest_marker("smoke"):
            return 0
        elif item.get_closest_marker("integration"):
            return 2
        elif item.get_closest_marker("slow"):
            return 3
        return 1

    items[:] = sorted(items, key=test_priority)
