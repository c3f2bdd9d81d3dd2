"""
Pytest configuration and fixtures.
"""

import os
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from sharepool.models import Base, Entity, StaffMember
from sharepool.services.rules import BusinessRules
from sharepool.services.tiers import DEFAULT_TIERS, seed_default_tiers


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ZERO = Decimal("0")


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_db(db_session):
    """Session with the default tier table in place."""
    await seed_default_tiers(db_session)
    return db_session


@pytest.fixture
def rules():
    return BusinessRules()


@pytest.fixture
def tiers():
    return list(DEFAULT_TIERS)


@pytest.fixture
def make_entity(seeded_db):
    """Insert a member directly with the given balances."""

    async def _make(code, tier="card_customer", **kwargs):
        values = {
            "cumulative_amount": ZERO,
            "capital_shares": ZERO,
            "labor_shares": ZERO,
            "withdrawable_balance": ZERO,
            "token_balance": ZERO,
            "base_investment": ZERO,
            "cumulative_distributed": ZERO,
            "maxout_reached": False,
            "is_active": True,
        }
        values.update(kwargs)
        entity = Entity(code=code, name=code, tier=tier, **values)
        seeded_db.add(entity)
        await seeded_db.flush()
        return entity

    return _make


@pytest.fixture
def make_staff(seeded_db):
    """Insert a staff member directly with the given shares."""

    async def _make(code, shares=ZERO, **kwargs):
        values = {
            "equity_percentage": ZERO,
            "token_balance": ZERO,
            "base_investment": ZERO,
            "cumulative_distributed": ZERO,
            "maxout_reached": False,
            "is_active": True,
        }
        values.update(kwargs)
        staff = StaffMember(code=code, name=code, shares=Decimal(shares), **values)
        seeded_db.add(staff)
        await seeded_db.flush()
        return staff

    return _make
