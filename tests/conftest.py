"""Pytest configuration and shared fixtures."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import helpdesk.adapters.persistence.models  # noqa: F401  registers the tables on Base.metadata
from helpdesk.adapters.persistence.database import Base
from helpdesk.domain.entities.membership import Principal
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.value_objects.enums import Role, TicketStatus


@pytest.fixture
def org_id():
    return "org-1"


@pytest.fixture
def customer(org_id):
    return Principal(user_id="cust-1", organization_id=org_id, role=Role.CUSTOMER)


@pytest.fixture
def agent(org_id):
    return Principal(user_id="agent-a", organization_id=org_id, role=Role.AGENT)


@pytest.fixture
def admin(org_id):
    return Principal(user_id="admin-1", organization_id=org_id, role=Role.ORG_ADMIN)


@pytest.fixture
def ticket(org_id):
    return Ticket(
        id=1,
        organization_id=org_id,
        customer_id="cust-1",
        title="Cannot log in",
        description="Password is rejected",
        status=TicketStatus.OPEN,
        assigned_agent_id="agent-a",
    )


# ─── SQLite-backed persistence ───────────────────────────────────────


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """File-backed SQLite so separate sessions get separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'helpdesk.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
