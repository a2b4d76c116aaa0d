"""AuthorizationPolicy — role-scoped visibility and mutation rights on tickets.

Role matrix:

    Role      | Visible tickets                | Status              | Description | Reassign
    ----------+--------------------------------+---------------------+-------------+---------
    Customer  | customer_id == principal       | open -> closed only | own ticket  | never
    Agent     | assigned_agent_id == principal | main chain only     | never       | never
    OrgAdmin  | all tickets in organization    | any defined step    | any         | yes

Every check is evaluated against the ticket as it is *now*; callers must
load the ticket fresh before asking.
"""

from __future__ import annotations

from dataclasses import dataclass

from helpdesk.domain.entities.membership import Principal
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.policies.ticket_status import (
    is_defined_transition,
    is_terminal,
    role_may_transition,
)
from helpdesk.domain.value_objects.enums import (
    DenyReason,
    Role,
    TicketAction,
    TicketStatus,
)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None
    detail: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, detail: str | None = None) -> "Decision":
        return cls(allowed=False, reason=reason, detail=detail or reason.value)


@dataclass(frozen=True)
class TicketScope:
    """Row filter for ticket queries. None fields are unconstrained."""

    organization_id: str
    customer_id: str | None = None
    assigned_agent_id: str | None = None

    def matches(self, ticket: Ticket) -> bool:
        if ticket.organization_id != self.organization_id:
            return False
        if self.customer_id is not None and ticket.customer_id != self.customer_id:
            return False
        if (
            self.assigned_agent_id is not None
            and ticket.assigned_agent_id != self.assigned_agent_id
        ):
            return False
        return True


def scope_query(principal: Principal) -> TicketScope:
    """The narrowest filter that still returns every ticket *principal* may see."""
    if principal.role == Role.ORG_ADMIN:
        return TicketScope(organization_id=principal.organization_id)
    if principal.role == Role.AGENT:
        return TicketScope(
            organization_id=principal.organization_id,
            assigned_agent_id=principal.user_id,
        )
    return TicketScope(
        organization_id=principal.organization_id,
        customer_id=principal.user_id,
    )


def is_visible(principal: Principal, ticket: Ticket) -> bool:
    return scope_query(principal).matches(ticket)


def authorize(
    principal: Principal | None,
    action: TicketAction,
    ticket: Ticket,
    new_status: TicketStatus | None = None,
) -> Decision:
    """Decide whether *principal* may perform *action* on *ticket*.

    A None principal means the user holds no membership in the ticket's
    organization and is always denied.
    """
    if principal is None:
        return Decision.deny(DenyReason.NOT_A_MEMBER, "Not a member of this organization")
    if principal.organization_id != ticket.organization_id:
        return Decision.deny(
            DenyReason.WRONG_ORGANIZATION, "Ticket belongs to another organization"
        )
    if not is_visible(principal, ticket):
        return Decision.deny(DenyReason.NOT_VISIBLE, "Ticket not found")

    if action == TicketAction.READ:
        return Decision.allow()

    if action == TicketAction.SET_STATUS:
        return _authorize_status(principal, ticket, new_status)

    if action == TicketAction.EDIT_DESCRIPTION:
        if principal.role == Role.AGENT:
            return Decision.deny(
                DenyReason.INSUFFICIENT_ROLE, "Agents cannot edit ticket descriptions"
            )
        return Decision.allow()

    if action == TicketAction.REASSIGN:
        if principal.role != Role.ORG_ADMIN:
            return Decision.deny(
                DenyReason.INSUFFICIENT_ROLE, "Only organization admins can reassign tickets"
            )
        return Decision.allow()

    return Decision.deny(DenyReason.INSUFFICIENT_ROLE, f"Unsupported action: {action}")


def _authorize_status(
    principal: Principal, ticket: Ticket, new_status: TicketStatus | None
) -> Decision:
    if new_status is None:
        return Decision.deny(DenyReason.INVALID_TRANSITION, "Target status is required")
    if is_terminal(ticket.status):
        return Decision.deny(
            DenyReason.TERMINAL_STATE,
            f"Ticket is {ticket.status.value}; no further transitions are allowed",
        )
    if not is_defined_transition(ticket.status, new_status):
        return Decision.deny(
            DenyReason.INVALID_TRANSITION,
            f"Cannot move ticket from {ticket.status.value} to {new_status.value}",
        )
    if not role_may_transition(principal.role, ticket.status, new_status):
        if principal.role == Role.CUSTOMER:
            detail = "Customers can only close their open tickets"
        else:
            detail = f"{principal.role.value} cannot move ticket to {new_status.value}"
        return Decision.deny(DenyReason.INSUFFICIENT_ROLE, detail)
    return Decision.allow()


def authorize_create(principal: Principal | None) -> Decision:
    """Only customers raise tickets."""
    if principal is None:
        return Decision.deny(DenyReason.NOT_A_MEMBER, "Not a member of this organization")
    if principal.role != Role.CUSTOMER:
        return Decision.deny(DenyReason.INSUFFICIENT_ROLE, "Only customers can create tickets")
    return Decision.allow()


def authorize_admin(principal: Principal | None) -> Decision:
    """Organization-level administration (assignment settings, queue rebuilds)."""
    if principal is None:
        return Decision.deny(DenyReason.NOT_A_MEMBER, "Not a member of this organization")
    if principal.role != Role.ORG_ADMIN:
        return Decision.deny(
            DenyReason.INSUFFICIENT_ROLE, "Only organization admins can change assignment settings"
        )
    return Decision.allow()
