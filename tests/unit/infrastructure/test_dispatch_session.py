"""Ticket creation through the real SQL wiring, with dispatch on its own session."""

from __future__ import annotations

import inspect

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from helpdesk.adapters.persistence.database import get_session
from helpdesk.adapters.persistence.models import (
    AgentAvailabilityModel,
    OrganizationModel,
    OrganizationUserModel,
    TicketModel,
)
from helpdesk.infrastructure.api import dependencies as deps
from helpdesk.main import create_app
from tests.fakes import FakeRotationQueue

ORG = "org-1"


async def _seed(session_factory) -> None:
    async with session_factory() as session:
        session.add(
            OrganizationModel(id=ORG, name="Acme", auto_assign=True, assignment_algo="LAA")
        )
        session.add_all(
            [
                OrganizationUserModel(organization_id=ORG, user_id="cust-1", role="Customer"),
                OrganizationUserModel(organization_id=ORG, user_id="A", role="Agent"),
                AgentAvailabilityModel(organization_id=ORG, user_id="A", max_tickets=5),
            ]
        )
        await session.commit()


def _make_app(ticket_sessions, dispatch_sessions):
    app = create_app()

    async def ticket_session():
        async with ticket_sessions() as session:
            yield session

    async def dispatch_session():
        async with dispatch_sessions() as session:
            yield session

    app.dependency_overrides.update(
        {
            get_session: ticket_session,
            deps.get_dispatch_session: dispatch_session,
            deps.get_rotation_queue: lambda: FakeRotationQueue(),
        }
    )
    return app


async def _post_ticket(app) -> httpx.Response:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(
            f"/api/organizations/{ORG}/tickets",
            json={"title": "VPN down"},
            headers={"X-User-Id": "cust-1"},
        )


async def _ticket_count(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(TicketModel))


@pytest.mark.asyncio
async def test_ticket_is_assigned_through_sql_repositories(session_factory):
    await _seed(session_factory)
    resp = await _post_ticket(_make_app(session_factory, session_factory))

    assert resp.status_code == 201
    assert resp.json()["assigned_agent_id"] == "A"
    assert resp.json()["dispatch"] == {"strategy": "least_active", "degraded": False}
    assert await _ticket_count(session_factory) == 1


@pytest.mark.asyncio
async def test_broken_dispatch_connection_does_not_lose_ticket(session_factory, tmp_path):
    """Every dispatch read fails at the connection level; the ticket still commits."""
    await _seed(session_factory)
    unreachable = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'nope.db'}"
    )
    broken_sessions = async_sessionmaker(unreachable, class_=AsyncSession)
    try:
        resp = await _post_ticket(_make_app(session_factory, broken_sessions))
    finally:
        await unreachable.dispose()

    assert resp.status_code == 201
    body = resp.json()
    assert body["assigned_agent_id"] is None
    assert body["dispatch"] == {"strategy": "none", "degraded": True}
    assert await _ticket_count(session_factory) == 1


def test_dispatcher_does_not_share_the_request_session():
    session_param = inspect.signature(deps.get_dispatcher).parameters["session"]
    assert session_param.default.dependency is deps.get_dispatch_session
    assert session_param.default.dependency is not get_session
