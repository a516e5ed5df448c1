"""
Shared fixtures.

Unit tests use ``mock_db`` (an AsyncMock session). Workflow tests use
``db_session``, a real AsyncSession on an in-memory SQLite database with
every table created.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolscope.core.auth import CurrentUser
from schoolscope.core.database import Base
from schoolscope.core.rate_limit import reset_memory_store
from schoolscope.modules.auth.models import UserSession  # noqa: F401 - registers table
from schoolscope.modules.school_edits.models import EditStatus, SchoolEdit
from schoolscope.modules.schools.models import EditableField, School
from schoolscope.modules.users.models import User


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_memory_store()
    yield
    reset_memory_store()


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def admin_user():
    return CurrentUser(
        id="00000000-0000-0000-0000-000000000001",
        email="admin@schoolscope.com.au",
        name="Ada Admin",
        is_admin=True,
        session_id="admin-session",
    )


@pytest.fixture
def regular_user():
    return CurrentUser(
        id="00000000-0000-0000-0000-000000000002",
        email="parent@example.com",
        name="Pat Parent",
        is_admin=False,
        session_id="user-session",
    )


def make_school(**overrides) -> School:
    """Build a transient School with realistic defaults."""
    values = {
        "id": str(uuid4()),
        "name": "Bondi Public School",
        "suburb": "Bondi",
        "state": "NSW",
        "postcode": "2026",
        "address": "Wellington St, Bondi NSW 2026",
        "phone": "0291300000",
        "email": "bondi-p.school@det.nsw.edu.au",
        "website": "https://bondi-p.schools.nsw.gov.au",
        "principal_name": "Jane Smith",
        "type": "Primary",
        "sector": "Government",
    }
    values.update(overrides)
    return School(**values)


def make_edit(**overrides) -> SchoolEdit:
    """Build a transient SchoolEdit with realistic defaults."""
    now = datetime.now(UTC)
    values = {
        "id": str(uuid4()),
        "school_id": str(uuid4()),
        "user_id": "00000000-0000-0000-0000-000000000002",
        "field": EditableField.PHONE,
        "old_value": "0291300000",
        "new_value": "0299999999",
        "reason": "Number changed this term",
        "status": EditStatus.PENDING,
        "reviewed_by": None,
        "reviewed_at": None,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return SchoolEdit(**values)


def make_user(**overrides) -> User:
    """Build a transient User."""
    values = {
        "id": "00000000-0000-0000-0000-000000000002",
        "email": "parent@example.com",
        "name": "Pat Parent",
        "password_hash": "not-a-real-hash",
        "is_admin": False,
        "is_active": True,
    }
    values.update(overrides)
    return User(**values)


@pytest.fixture
def school_factory():
    return make_school


@pytest.fixture
def edit_factory():
    return make_edit


@pytest.fixture
def user_factory():
    return make_user


# ============================================
# SQLite-backed session
# ============================================


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncSession:
    maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        yield session
