"""In-memory implementations of the ports, shared by the unit tests."""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import datetime, timedelta, timezone

from helpdesk.application.ports.availability_repo import AvailabilityRepository
from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.application.ports.organization_repo import OrganizationRepository
from helpdesk.application.ports.rotation_queue import RotationQueue
from helpdesk.application.ports.ticket_repo import TicketHistoryRepository, TicketRepository
from helpdesk.domain.entities.agent_availability import AgentAvailability
from helpdesk.domain.entities.membership import Membership
from helpdesk.domain.entities.organization import AssignmentSettings, Organization
from helpdesk.domain.entities.ticket import Ticket, TicketHistory
from helpdesk.domain.errors import TransientStoreError
from helpdesk.domain.policies.authorization import TicketScope
from helpdesk.domain.value_objects.enums import AssignmentAlgo, Role

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeOrganizationRepo(OrganizationRepository):
    def __init__(
        self,
        organizations: list[Organization] | None = None,
        fail: bool = False,
        delay: float = 0.0,
    ):
        self._orgs = {o.id: o for o in organizations or []}
        self.fail = fail
        self.delay = delay

    async def get_by_id(self, organization_id):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise TransientStoreError("settings store down")
        return self._orgs.get(organization_id)

    async def save(self, organization):
        self._orgs[organization.id] = organization
        return organization

    async def update_assignment_settings(self, organization_id, settings):
        org = self._orgs.get(organization_id)
        if org is None:
            return None
        org.settings = settings
        return settings


class FakeMembershipRepo(MembershipRepository):
    def __init__(
        self,
        memberships: list[Membership] | None = None,
        fail: bool = False,
        fail_lookup: bool = False,
    ):
        self._rows: list[Membership] = list(memberships or [])
        self.fail = fail
        # Only single-member lookups fail; the roster stays readable.
        self.fail_lookup = fail_lookup

    async def list_agents(self, organization_id):
        if self.fail:
            raise TransientStoreError("membership directory down")
        agents = [
            m for m in self._rows
            if m.organization_id == organization_id and m.role == Role.AGENT
        ]
        return sorted(agents, key=lambda m: m.joined_at)

    async def get_membership(self, organization_id, user_id):
        if self.fail or self.fail_lookup:
            raise TransientStoreError("membership directory down")
        return next(
            (
                m for m in self._rows
                if m.organization_id == organization_id and m.user_id == user_id
            ),
            None,
        )

    async def save(self, membership):
        self._rows.append(membership)
        return membership

    def remove(self, organization_id: str, user_id: str) -> None:
        self._rows = [
            m for m in self._rows
            if not (m.organization_id == organization_id and m.user_id == user_id)
        ]


class FakeAvailabilityRepo(AvailabilityRepository):
    def __init__(self, rows: list[AgentAvailability] | None = None, fail: bool = False):
        self.rows = list(rows or [])
        self.fail = fail

    async def list_eligible(self, organization_id):
        if self.fail:
            raise TransientStoreError("availability store down")
        eligible = [
            r for r in self.rows
            if r.organization_id == organization_id and r.is_eligible()
        ]
        return sorted(eligible, key=lambda r: (r.current_tickets, r.user_id))

    async def get(self, organization_id, user_id):
        return next(
            (
                r for r in self.rows
                if r.organization_id == organization_id and r.user_id == user_id
            ),
            None,
        )


class FakeRotationQueue(RotationQueue):
    """Dict of deques; every method is a single step, like one Redis command."""

    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.queues: dict[str, deque[str]] = {}
        self.fail = fail
        self.delay = delay
        self.rotations = 0

    async def _io(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise TransientStoreError("rotation queue down")

    async def rotate(self, organization_id):
        await self._io()
        q = self.queues.get(organization_id)
        if not q:
            return None
        q.rotate(-1)
        self.rotations += 1
        return q[-1]

    async def length(self, organization_id):
        await self._io()
        return len(self.queues.get(organization_id, ()))

    async def push_all(self, organization_id, agent_ids):
        await self._io()
        q = self.queues.setdefault(organization_id, deque())
        q.extend(agent_ids)
        return len(q)

    async def replace(self, organization_id, agent_ids):
        await self._io()
        self.queues[organization_id] = deque(agent_ids)
        return len(agent_ids)

    async def snapshot(self, organization_id):
        await self._io()
        return list(self.queues.get(organization_id, ()))


class FakeTicketRepo(TicketRepository):
    def __init__(self):
        self.tickets: dict[int, Ticket] = {}
        self.list_calls: list[TicketScope] = []

    async def save(self, ticket):
        ticket.id = len(self.tickets) + 1
        ticket.created_at = BASE_TIME + timedelta(minutes=ticket.id)
        self.tickets[ticket.id] = ticket
        return ticket

    async def get_by_id(self, ticket_id):
        return self.tickets.get(ticket_id)

    async def list_scoped(self, scope):
        self.list_calls.append(scope)
        matching = [t for t in self.tickets.values() if scope.matches(t)]
        return sorted(matching, key=lambda t: t.id, reverse=True)

    async def update(self, ticket):
        self.tickets[ticket.id] = ticket
        return ticket


class FakeHistoryRepo(TicketHistoryRepository):
    def __init__(self):
        self.entries: list[TicketHistory] = []

    async def add(self, entry):
        entry.id = len(self.entries) + 1
        self.entries.append(entry)
        return entry

    async def get_by_ticket(self, ticket_id):
        return [e for e in self.entries if e.ticket_id == ticket_id]


# ─── Builders ────────────────────────────────────────────────────────


def make_org(
    org_id: str = "org-1",
    auto_assign: bool = True,
    algo: AssignmentAlgo = AssignmentAlgo.ROUND_ROBIN,
) -> Organization:
    return Organization(
        id=org_id,
        name=f"Org {org_id}",
        settings=AssignmentSettings(auto_assign=auto_assign, assignment_algo=algo),
    )


def member(user_id: str, role: Role, org_id: str = "org-1", order: int = 0) -> Membership:
    return Membership(
        organization_id=org_id,
        user_id=user_id,
        role=role,
        joined_at=BASE_TIME + timedelta(hours=order),
    )


def agents(*user_ids: str, org_id: str = "org-1") -> list[Membership]:
    """Agents joined in argument order."""
    return [member(uid, Role.AGENT, org_id, order=i) for i, uid in enumerate(user_ids)]


def availability(
    user_id: str,
    current: int = 0,
    max_tickets: int = 5,
    available: bool = True,
    org_id: str = "org-1",
) -> AgentAvailability:
    return AgentAvailability(
        organization_id=org_id,
        user_id=user_id,
        is_available=available,
        current_tickets=current,
        max_tickets=max_tickets,
    )
