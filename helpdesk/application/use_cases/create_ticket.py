"""CreateTicketUseCase — persist a customer's ticket and dispatch it once."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.application.ports.organization_repo import OrganizationRepository
from helpdesk.application.ports.ticket_repo import TicketRepository
from helpdesk.application.use_cases.common import resolve_principal
from helpdesk.application.use_cases.dispatch_ticket import Dispatcher
from helpdesk.domain.entities.dispatch_result import DispatchResult
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.errors import AuthorizationDenied, ConfigurationError
from helpdesk.domain.policies.authorization import authorize_create

logger = logging.getLogger(__name__)


@dataclass
class TicketCreationResult:
    ticket: Ticket
    dispatch: DispatchResult


class CreateTicketUseCase:
    """Ticket creation never fails because dispatch failed; the ticket is
    simply left unassigned for an org admin to pick up."""

    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        ticket_repo: TicketRepository,
        dispatcher: Dispatcher,
        timeout: float = 2.0,
    ):
        self._orgs = organizations
        self._memberships = memberships
        self._tickets = ticket_repo
        self._dispatcher = dispatcher
        self._timeout = timeout

    async def execute(
        self,
        organization_id: str,
        user_id: str,
        title: str,
        description: str | None = None,
    ) -> TicketCreationResult:
        if await self._orgs.get_by_id(organization_id) is None:
            raise ConfigurationError(organization_id)

        principal = await resolve_principal(
            self._memberships, organization_id, user_id, self._timeout
        )
        decision = authorize_create(principal)
        if not decision.allowed:
            raise AuthorizationDenied(decision.reason, decision.detail)

        ticket = await self._tickets.save(
            Ticket(
                id=None,
                organization_id=organization_id,
                customer_id=user_id,
                title=title,
                description=description,
            )
        )

        try:
            result = await self._dispatcher.assign(organization_id)
        except ConfigurationError:
            raise
        except Exception:
            logger.exception("Dispatch failed for ticket %s, leaving it unassigned", ticket.id)
            result = DispatchResult.unassigned(degraded=True)

        if result.assigned:
            ticket.assigned_agent_id = result.agent_id
            ticket.assigned_by = user_id
            await self._tickets.update(ticket)
            logger.info(
                "Ticket %s → agent %s (%s)", ticket.id, result.agent_id, result.strategy.value
            )
        else:
            logger.info("Ticket %s created unassigned", ticket.id)

        return TicketCreationResult(ticket=ticket, dispatch=result)
