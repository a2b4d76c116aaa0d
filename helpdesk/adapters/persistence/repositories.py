"""SQLAlchemy repository implementations."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.adapters.persistence.models import (
    AgentAvailabilityModel,
    OrganizationModel,
    OrganizationUserModel,
    TicketHistoryModel,
    TicketModel,
)
from helpdesk.application.ports.availability_repo import AvailabilityRepository
from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.application.ports.organization_repo import OrganizationRepository
from helpdesk.application.ports.ticket_repo import TicketHistoryRepository, TicketRepository
from helpdesk.domain.entities.agent_availability import AgentAvailability
from helpdesk.domain.entities.membership import Membership
from helpdesk.domain.entities.organization import AssignmentSettings, Organization
from helpdesk.domain.entities.ticket import Ticket, TicketHistory
from helpdesk.domain.errors import TransientStoreError
from helpdesk.domain.policies.authorization import TicketScope
from helpdesk.domain.value_objects.enums import AssignmentAlgo, Role, TicketStatus

logger = logging.getLogger(__name__)

# ─── Mappers ─────────────────────────────────────────────────────────


def _organization_to_domain(m: OrganizationModel) -> Organization:
    return Organization(
        id=m.id,
        name=m.name,
        settings=AssignmentSettings(
            auto_assign=m.auto_assign,
            assignment_algo=AssignmentAlgo(m.assignment_algo),
        ),
    )


def _membership_to_domain(m: OrganizationUserModel) -> Membership:
    return Membership(
        organization_id=m.organization_id,
        user_id=m.user_id,
        role=Role.from_external(m.role),
        joined_at=m.created_at,
    )


def _known_membership(m: OrganizationUserModel) -> Membership | None:
    """Map a membership row, or None when its stored role is unknown."""
    try:
        return _membership_to_domain(m)
    except ValueError:
        logger.warning(
            "Unknown role %r for user %s in org %s; treating as non-member",
            m.role, m.user_id, m.organization_id,
        )
        return None


def _availability_to_domain(m: AgentAvailabilityModel) -> AgentAvailability:
    return AgentAvailability(
        organization_id=m.organization_id,
        user_id=m.user_id,
        is_available=m.is_available,
        current_tickets=m.current_tickets,
        max_tickets=m.max_tickets,
    )


def _ticket_to_domain(m: TicketModel) -> Ticket:
    return Ticket(
        id=m.id,
        organization_id=m.organization_id,
        customer_id=m.customer_id,
        title=m.title,
        description=m.description,
        status=TicketStatus(m.status),
        assigned_agent_id=m.assigned_agent_id,
        assigned_by=m.assigned_by,
        created_at=m.created_at,
        updated_at=m.updated_at,
        resolved_at=m.resolved_at,
        closed_at=m.closed_at,
    )


def _history_to_domain(m: TicketHistoryModel) -> TicketHistory:
    return TicketHistory(
        id=m.id,
        ticket_id=m.ticket_id,
        user_id=m.user_id,
        field_name=m.field_name,
        old_value=m.old_value,
        new_value=m.new_value,
        created_at=m.created_at,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlOrganizationRepository(OrganizationRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, organization_id: str) -> Organization | None:
        try:
            async with self._s.begin_nested():
                m = await self._s.get(OrganizationModel, organization_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise TransientStoreError(f"organization settings: {e}") from e
        return _organization_to_domain(m) if m else None

    async def save(self, organization: Organization) -> Organization:
        m = OrganizationModel(
            id=organization.id,
            name=organization.name,
            auto_assign=organization.settings.auto_assign,
            assignment_algo=organization.settings.assignment_algo.value,
        )
        self._s.add(m)
        await self._s.flush()
        return organization

    async def update_assignment_settings(
        self, organization_id: str, settings: AssignmentSettings
    ) -> AssignmentSettings | None:
        result = await self._s.execute(
            update(OrganizationModel)
            .where(OrganizationModel.id == organization_id)
            .values(
                auto_assign=settings.auto_assign,
                assignment_algo=settings.assignment_algo.value,
            )
        )
        await self._s.flush()
        return settings if result.rowcount else None


class SqlMembershipRepository(MembershipRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def list_agents(self, organization_id: str) -> list[Membership]:
        # Runs inside a SAVEPOINT: a failed read must not abort the
        # surrounding ticket-creation transaction.
        try:
            async with self._s.begin_nested():
                result = await self._s.execute(
                    select(OrganizationUserModel)
                    .where(OrganizationUserModel.organization_id == organization_id)
                    .order_by(OrganizationUserModel.created_at, OrganizationUserModel.user_id)
                )
                rows = list(result.scalars())
        except SQLAlchemyError as e:
            raise TransientStoreError(f"membership directory: {e}") from e
        # Stored roles may use legacy names, so the Agent filter runs after mapping.
        members = (_known_membership(m) for m in rows)
        return [m for m in members if m is not None and m.is_agent()]

    async def get_membership(self, organization_id: str, user_id: str) -> Membership | None:
        try:
            async with self._s.begin_nested():
                result = await self._s.execute(
                    select(OrganizationUserModel).where(
                        OrganizationUserModel.organization_id == organization_id,
                        OrganizationUserModel.user_id == user_id,
                    )
                )
                m = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise TransientStoreError(f"membership directory: {e}") from e
        return _known_membership(m) if m is not None else None

    async def save(self, membership: Membership) -> Membership:
        m = OrganizationUserModel(
            organization_id=membership.organization_id,
            user_id=membership.user_id,
            role=membership.role.value,
        )
        if membership.joined_at is not None:
            m.created_at = membership.joined_at
        self._s.add(m)
        await self._s.flush()
        membership.joined_at = m.created_at
        return membership


class SqlAvailabilityRepository(AvailabilityRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def list_eligible(self, organization_id: str) -> list[AgentAvailability]:
        try:
            async with self._s.begin_nested():
                result = await self._s.execute(
                    select(AgentAvailabilityModel)
                    .where(
                        AgentAvailabilityModel.organization_id == organization_id,
                        AgentAvailabilityModel.is_available.is_(True),
                        AgentAvailabilityModel.current_tickets
                        < AgentAvailabilityModel.max_tickets,
                    )
                    .order_by(
                        AgentAvailabilityModel.current_tickets,
                        AgentAvailabilityModel.user_id,
                    )
                )
                rows = list(result.scalars())
        except SQLAlchemyError as e:
            raise TransientStoreError(f"availability store: {e}") from e
        return [_availability_to_domain(m) for m in rows]

    async def get(self, organization_id: str, user_id: str) -> AgentAvailability | None:
        result = await self._s.execute(
            select(AgentAvailabilityModel).where(
                AgentAvailabilityModel.organization_id == organization_id,
                AgentAvailabilityModel.user_id == user_id,
            )
        )
        m = result.scalar_one_or_none()
        return _availability_to_domain(m) if m else None

    async def save(self, row: AgentAvailability) -> AgentAvailability:
        """Used by seeding tools only; the dispatch core never writes availability."""
        self._s.add(
            AgentAvailabilityModel(
                organization_id=row.organization_id,
                user_id=row.user_id,
                is_available=row.is_available,
                current_tickets=row.current_tickets,
                max_tickets=row.max_tickets,
            )
        )
        await self._s.flush()
        return row


class SqlTicketRepository(TicketRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, ticket: Ticket) -> Ticket:
        m = TicketModel(
            organization_id=ticket.organization_id,
            customer_id=ticket.customer_id,
            title=ticket.title,
            description=ticket.description,
            status=ticket.status.value,
            assigned_agent_id=ticket.assigned_agent_id,
            assigned_by=ticket.assigned_by,
        )
        self._s.add(m)
        await self._s.flush()
        await self._s.refresh(m)
        ticket.id = m.id
        ticket.created_at = m.created_at
        return ticket

    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        m = await self._s.get(TicketModel, ticket_id, populate_existing=True)
        return _ticket_to_domain(m) if m else None

    async def list_scoped(self, scope: TicketScope) -> list[Ticket]:
        query = select(TicketModel).where(TicketModel.organization_id == scope.organization_id)
        if scope.customer_id is not None:
            query = query.where(TicketModel.customer_id == scope.customer_id)
        if scope.assigned_agent_id is not None:
            query = query.where(TicketModel.assigned_agent_id == scope.assigned_agent_id)
        result = await self._s.execute(
            query.order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
        )
        return [_ticket_to_domain(m) for m in result.scalars()]

    async def update(self, ticket: Ticket) -> Ticket:
        await self._s.execute(
            update(TicketModel)
            .where(TicketModel.id == ticket.id)
            .values(
                description=ticket.description,
                status=ticket.status.value,
                assigned_agent_id=ticket.assigned_agent_id,
                assigned_by=ticket.assigned_by,
                updated_at=ticket.updated_at,
                resolved_at=ticket.resolved_at,
                closed_at=ticket.closed_at,
            )
        )
        await self._s.flush()
        return ticket


class SqlTicketHistoryRepository(TicketHistoryRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add(self, entry: TicketHistory) -> TicketHistory:
        m = TicketHistoryModel(
            ticket_id=entry.ticket_id,
            user_id=entry.user_id,
            field_name=entry.field_name,
            old_value=entry.old_value,
            new_value=entry.new_value,
        )
        self._s.add(m)
        await self._s.flush()
        entry.id = m.id
        return entry

    async def get_by_ticket(self, ticket_id: int) -> list[TicketHistory]:
        result = await self._s.execute(
            select(TicketHistoryModel)
            .where(TicketHistoryModel.ticket_id == ticket_id)
            .order_by(TicketHistoryModel.id)
        )
        return [_history_to_domain(m) for m in result.scalars()]
