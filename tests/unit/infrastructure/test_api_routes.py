"""HTTP layer tests: use cases wired to in-memory fakes through dependency overrides."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from helpdesk.adapters.persistence.database import get_session
from helpdesk.application.use_cases.assignment_settings import (
    GetAssignmentSettingsUseCase,
    RebuildRotationQueueUseCase,
    UpdateAssignmentSettingsUseCase,
)
from helpdesk.application.use_cases.create_ticket import CreateTicketUseCase
from helpdesk.application.use_cases.dispatch_ticket import Dispatcher
from helpdesk.application.use_cases.query_tickets import QueryTicketsUseCase
from helpdesk.application.use_cases.rotation_queue import RotationQueueManager
from helpdesk.application.use_cases.update_ticket import UpdateTicketUseCase
from helpdesk.domain.value_objects.enums import Role
from helpdesk.infrastructure.api import dependencies as deps
from helpdesk.main import create_app
from tests.fakes import (
    FakeAvailabilityRepo,
    FakeHistoryRepo,
    FakeMembershipRepo,
    FakeOrganizationRepo,
    FakeRotationQueue,
    FakeTicketRepo,
    agents,
    make_org,
    member,
)

ORG = "org-1"


class FakeSession:
    def __init__(self):
        self.commits = 0

    async def commit(self):
        self.commits += 1


@pytest.fixture
def wiring():
    orgs = FakeOrganizationRepo([make_org()])
    memberships = FakeMembershipRepo(
        agents("A", "B")
        + [
            member("cust-1", Role.CUSTOMER),
            member("cust-2", Role.CUSTOMER),
            member("admin-1", Role.ORG_ADMIN),
        ]
    )
    queue = FakeRotationQueue()
    tickets = FakeTicketRepo()
    history = FakeHistoryRepo()
    rotation = RotationQueueManager(queue, memberships)
    dispatcher = Dispatcher(orgs, memberships, FakeAvailabilityRepo(), queue)
    session = FakeSession()

    app = create_app()

    async def fake_session():
        yield session

    app.dependency_overrides.update(
        {
            get_session: fake_session,
            deps.get_create_ticket_uc: lambda: CreateTicketUseCase(
                orgs, memberships, tickets, dispatcher
            ),
            deps.get_update_ticket_uc: lambda: UpdateTicketUseCase(tickets, history, memberships),
            deps.get_query_tickets_uc: lambda: QueryTicketsUseCase(tickets, history, memberships),
            deps.get_assignment_settings_uc: lambda: GetAssignmentSettingsUseCase(
                orgs, memberships
            ),
            deps.get_update_assignment_settings_uc: lambda: UpdateAssignmentSettingsUseCase(
                orgs, memberships, rotation
            ),
            deps.get_rebuild_queue_uc: lambda: RebuildRotationQueueUseCase(
                orgs, memberships, rotation
            ),
        }
    )
    return {"app": app, "session": session, "queue": queue, "tickets": tickets}


@pytest_asyncio.fixture
async def client(wiring):
    transport = httpx.ASGITransport(app=wiring["app"])
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _as(user_id: str) -> dict:
    return {"X-User-Id": user_id}


async def _create(client, user_id="cust-1", title="Cannot log in"):
    return await client.post(
        f"/api/organizations/{ORG}/tickets", json={"title": title}, headers=_as(user_id)
    )


@pytest.mark.asyncio
async def test_missing_identity_is_401(client):
    resp = await client.get(f"/api/organizations/{ORG}/tickets")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_assigns_and_commits(client, wiring):
    resp = await _create(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["assigned_agent_id"] == "A"
    assert body["status"] == "open"
    assert body["dispatch"] == {"strategy": "round_robin", "degraded": False}
    assert wiring["session"].commits == 1


@pytest.mark.asyncio
async def test_agent_cannot_create(client):
    resp = await _create(client, user_id="A")
    assert resp.status_code == 403
    assert resp.json()["detail"]["reason"] == "insufficient_role"


@pytest.mark.asyncio
async def test_create_requires_title(client):
    resp = await client.post(
        f"/api/organizations/{ORG}/tickets", json={"title": ""}, headers=_as("cust-1")
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_invisible_ticket_looks_missing(client):
    await _create(client)
    resp = await client.get("/api/tickets/1", headers=_as("cust-2"))
    assert resp.status_code == 404
    assert "reason" not in resp.json()["detail"]

    missing = await client.get("/api/tickets/999", headers=_as("cust-2"))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_listing_is_scoped(client):
    await _create(client, title="first")
    await _create(client, user_id="cust-2", title="second")

    resp = await client.get(f"/api/organizations/{ORG}/tickets", headers=_as("cust-2"))
    assert resp.status_code == 200
    assert [t["title"] for t in resp.json()["tickets"]] == ["second"]

    admin_view = await client.get(f"/api/organizations/{ORG}/tickets", headers=_as("admin-1"))
    assert admin_view.json()["total"] == 2


@pytest.mark.asyncio
async def test_status_flow_and_terminal_state(client):
    await _create(client)
    closed = await client.patch("/api/tickets/1", json={"status": "closed"}, headers=_as("cust-1"))
    assert closed.status_code == 200
    assert closed.json()["closed_at"] is not None

    reopen = await client.patch("/api/tickets/1", json={"status": "open"}, headers=_as("admin-1"))
    assert reopen.status_code == 409
    assert reopen.json()["detail"]["reason"] == "terminal_state"

    history = await client.get("/api/tickets/1/history", headers=_as("cust-1"))
    assert [h["new_value"] for h in history.json()["history"]] == ["closed"]


@pytest.mark.asyncio
async def test_empty_patch_is_400(client):
    await _create(client)
    resp = await client.patch("/api/tickets/1", json={}, headers=_as("admin-1"))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_assignment_settings_round_trip(client, wiring):
    resp = await client.put(
        f"/api/organizations/{ORG}/assignment",
        json={"auto_assign": True, "assignment_algo": "RR", "rebuild_rr": True},
        headers=_as("admin-1"),
    )
    assert resp.status_code == 200
    assert resp.json()["settings"] == {"auto_assign": True, "assignment_algo": "RR"}
    assert list(wiring["queue"].queues[ORG]) == ["A", "B"]

    read = await client.get(f"/api/organizations/{ORG}/assignment", headers=_as("cust-1"))
    assert read.json()["settings"]["assignment_algo"] == "RR"


@pytest.mark.asyncio
async def test_settings_update_by_agent_is_403(client):
    resp = await client.put(
        f"/api/organizations/{ORG}/assignment",
        json={"auto_assign": False, "assignment_algo": "LAA"},
        headers=_as("A"),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_rebuild_endpoint(client):
    resp = await client.post(f"/api/organizations/{ORG}/rr/rebuild", headers=_as("admin-1"))
    assert resp.json() == {"success": True, "count": 2}


@pytest.mark.asyncio
async def test_unknown_organization_is_404(client):
    resp = await client.get("/api/organizations/nope/assignment", headers=_as("admin-1"))
    assert resp.status_code == 404
