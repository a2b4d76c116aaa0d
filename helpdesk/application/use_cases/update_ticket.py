"""UpdateTicketUseCase — status changes, description edits and manual reassignment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.application.ports.ticket_repo import TicketHistoryRepository, TicketRepository
from helpdesk.application.use_cases.common import resolve_principal
from helpdesk.domain.entities.ticket import Ticket, TicketHistory
from helpdesk.domain.errors import (
    AuthorizationDenied,
    InvalidTicketUpdateError,
    TicketNotFoundError,
)
from helpdesk.domain.policies.authorization import authorize
from helpdesk.domain.value_objects.enums import TicketAction, TicketStatus

logger = logging.getLogger(__name__)


@dataclass
class TicketChanges:
    status: TicketStatus | None = None
    description: str | None = None
    assigned_agent_id: str | None = None

    def is_empty(self) -> bool:
        return (
            self.status is None
            and self.description is None
            and self.assigned_agent_id is None
        )


class UpdateTicketUseCase:
    """Applies a set of changes only if every one of them is authorized.

    The ticket and the caller's membership are read fresh on each call, so a
    reassignment immediately changes which agent passes the checks.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        history_repo: TicketHistoryRepository,
        memberships: MembershipRepository,
        timeout: float = 2.0,
    ):
        self._tickets = ticket_repo
        self._history = history_repo
        self._memberships = memberships
        self._timeout = timeout

    async def execute(self, ticket_id: int, user_id: str, changes: TicketChanges) -> Ticket:
        if changes.is_empty():
            raise InvalidTicketUpdateError("No valid fields to update")

        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)

        principal = await resolve_principal(
            self._memberships, ticket.organization_id, user_id, self._timeout
        )

        requested: list[tuple[TicketAction, TicketStatus | None]] = []
        if changes.status is not None:
            requested.append((TicketAction.SET_STATUS, changes.status))
        if changes.description is not None:
            requested.append((TicketAction.EDIT_DESCRIPTION, None))
        if changes.assigned_agent_id is not None:
            requested.append((TicketAction.REASSIGN, None))

        for action, new_status in requested:
            decision = authorize(principal, action, ticket, new_status=new_status)
            if not decision.allowed:
                logger.info(
                    "Denied %s on ticket %s for user %s: %s",
                    action.value, ticket_id, user_id, decision.reason.value,
                )
                raise AuthorizationDenied(decision.reason, decision.detail)

        if changes.assigned_agent_id is not None:
            await self._ensure_agent(ticket.organization_id, changes.assigned_agent_id)

        entries = self._apply(ticket, user_id, changes)
        await self._tickets.update(ticket)
        for entry in entries:
            await self._history.add(entry)

        logger.info("Ticket %s updated by %s: %s", ticket_id, user_id, [e.field_name for e in entries])
        return ticket

    async def _ensure_agent(self, organization_id: str, agent_id: str) -> None:
        target = await self._memberships.get_membership(organization_id, agent_id)
        if target is None or not target.is_agent():
            raise InvalidTicketUpdateError(
                f"User {agent_id} is not an agent of organization {organization_id}"
            )

    @staticmethod
    def _apply(ticket: Ticket, user_id: str, changes: TicketChanges) -> list[TicketHistory]:
        now = datetime.now(timezone.utc)
        entries: list[TicketHistory] = []

        def record(field_name: str, old: str | None, new: str | None) -> None:
            entries.append(
                TicketHistory(
                    id=None, ticket_id=ticket.id, user_id=user_id,
                    field_name=field_name, old_value=old, new_value=new, created_at=now,
                )
            )

        if changes.status is not None:
            record("status", ticket.status.value, changes.status.value)
            ticket.status = changes.status
            if changes.status == TicketStatus.RESOLVED:
                ticket.resolved_at = now
            elif changes.status == TicketStatus.CLOSED:
                ticket.closed_at = now

        if changes.description is not None:
            record("description", ticket.description, changes.description)
            ticket.description = changes.description

        if changes.assigned_agent_id is not None:
            record("assigned_agent_id", ticket.assigned_agent_id, changes.assigned_agent_id)
            ticket.assigned_agent_id = changes.assigned_agent_id
            ticket.assigned_by = user_id

        ticket.updated_at = now
        return entries
