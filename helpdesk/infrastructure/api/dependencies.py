"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.adapters.persistence.database import async_session_factory, get_session
from helpdesk.adapters.persistence.repositories import (
    SqlAvailabilityRepository,
    SqlMembershipRepository,
    SqlOrganizationRepository,
    SqlTicketHistoryRepository,
    SqlTicketRepository,
)
from helpdesk.adapters.redis_queue.client import get_redis
from helpdesk.adapters.redis_queue.rotation_queue import RedisRotationQueue
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
from helpdesk.config import settings

def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity, set by the OIDC gateway in front of this service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


async def get_dispatch_session() -> AsyncGenerator[AsyncSession, None]:
    """Read-only session for dispatch.

    Dispatch reads are bounded by timeouts, and a cancelled statement may
    invalidate its connection. They never share one with the ticket's
    transaction, so a timed-out read cannot lose the ticket.
    """
    async with async_session_factory() as session:
        yield session


def get_rotation_queue() -> RedisRotationQueue:
    return RedisRotationQueue(get_redis())


def get_rotation_manager(
    session: AsyncSession = Depends(get_session),
    queue: RedisRotationQueue = Depends(get_rotation_queue),
) -> RotationQueueManager:
    return RotationQueueManager(
        queue, SqlMembershipRepository(session), timeout=settings.store_timeout_seconds
    )


def get_dispatcher(
    session: AsyncSession = Depends(get_dispatch_session),
    queue: RedisRotationQueue = Depends(get_rotation_queue),
) -> Dispatcher:
    return Dispatcher(
        organizations=SqlOrganizationRepository(session),
        memberships=SqlMembershipRepository(session),
        availability=SqlAvailabilityRepository(session),
        queue=queue,
        timeout=settings.store_timeout_seconds,
        revalidate_membership=settings.dispatch_revalidate_membership,
    )


def get_create_ticket_uc(
    session: AsyncSession = Depends(get_session),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> CreateTicketUseCase:
    return CreateTicketUseCase(
        organizations=SqlOrganizationRepository(session),
        memberships=SqlMembershipRepository(session),
        ticket_repo=SqlTicketRepository(session),
        dispatcher=dispatcher,
        timeout=settings.store_timeout_seconds,
    )


def get_update_ticket_uc(session: AsyncSession = Depends(get_session)) -> UpdateTicketUseCase:
    return UpdateTicketUseCase(
        ticket_repo=SqlTicketRepository(session),
        history_repo=SqlTicketHistoryRepository(session),
        memberships=SqlMembershipRepository(session),
        timeout=settings.store_timeout_seconds,
    )


def get_query_tickets_uc(session: AsyncSession = Depends(get_session)) -> QueryTicketsUseCase:
    return QueryTicketsUseCase(
        ticket_repo=SqlTicketRepository(session),
        history_repo=SqlTicketHistoryRepository(session),
        memberships=SqlMembershipRepository(session),
        timeout=settings.store_timeout_seconds,
    )


def get_assignment_settings_uc(
    session: AsyncSession = Depends(get_session),
) -> GetAssignmentSettingsUseCase:
    return GetAssignmentSettingsUseCase(
        SqlOrganizationRepository(session),
        SqlMembershipRepository(session),
        timeout=settings.store_timeout_seconds,
    )


def get_update_assignment_settings_uc(
    session: AsyncSession = Depends(get_session),
    rotation: RotationQueueManager = Depends(get_rotation_manager),
) -> UpdateAssignmentSettingsUseCase:
    return UpdateAssignmentSettingsUseCase(
        SqlOrganizationRepository(session),
        SqlMembershipRepository(session),
        rotation,
        timeout=settings.store_timeout_seconds,
    )


def get_rebuild_queue_uc(
    session: AsyncSession = Depends(get_session),
    rotation: RotationQueueManager = Depends(get_rotation_manager),
) -> RebuildRotationQueueUseCase:
    return RebuildRotationQueueUseCase(
        SqlOrganizationRepository(session),
        SqlMembershipRepository(session),
        rotation,
        timeout=settings.store_timeout_seconds,
    )
