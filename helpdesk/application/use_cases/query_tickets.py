"""QueryTicketsUseCase — role-scoped ticket reads."""

from __future__ import annotations

from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.application.ports.ticket_repo import TicketHistoryRepository, TicketRepository
from helpdesk.application.use_cases.common import resolve_principal
from helpdesk.domain.entities.ticket import Ticket, TicketHistory
from helpdesk.domain.errors import AuthorizationDenied, TicketNotFoundError
from helpdesk.domain.policies.authorization import authorize, scope_query
from helpdesk.domain.value_objects.enums import DenyReason, TicketAction


class QueryTicketsUseCase:
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

    async def list_for(self, organization_id: str, user_id: str) -> list[Ticket]:
        """Tickets of *organization_id* visible to *user_id*.

        The scope is handed to the repository so rows outside it are never fetched.
        """
        principal = await resolve_principal(
            self._memberships, organization_id, user_id, self._timeout
        )
        if principal is None:
            raise AuthorizationDenied(
                DenyReason.NOT_A_MEMBER, "Not a member of this organization"
            )
        return await self._tickets.list_scoped(scope_query(principal))

    async def get(self, ticket_id: int, user_id: str) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)

        principal = await resolve_principal(
            self._memberships, ticket.organization_id, user_id, self._timeout
        )
        decision = authorize(principal, TicketAction.READ, ticket)
        if not decision.allowed:
            raise AuthorizationDenied(decision.reason, decision.detail)
        return ticket

    async def history(self, ticket_id: int, user_id: str) -> list[TicketHistory]:
        await self.get(ticket_id, user_id)
        return await self._history.get_by_ticket(ticket_id)
