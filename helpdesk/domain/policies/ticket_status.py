"""Ticket status state machine."""

from __future__ import annotations

from helpdesk.domain.value_objects.enums import Role, TicketStatus

# open -> in_progress -> resolved -> closed, plus the open -> closed shortcut.
TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    TicketStatus.OPEN: frozenset({TicketStatus.IN_PROGRESS, TicketStatus.CLOSED}),
    TicketStatus.IN_PROGRESS: frozenset({TicketStatus.RESOLVED}),
    TicketStatus.RESOLVED: frozenset({TicketStatus.CLOSED}),
    TicketStatus.CLOSED: frozenset(),
}

SHORTCUT = (TicketStatus.OPEN, TicketStatus.CLOSED)

# Roles allowed to take the open -> closed shortcut.
SHORTCUT_ROLES = frozenset({Role.CUSTOMER, Role.ORG_ADMIN})


def is_terminal(status: TicketStatus) -> bool:
    return not TRANSITIONS[status]


def is_defined_transition(current: TicketStatus, target: TicketStatus) -> bool:
    return target in TRANSITIONS[current]


def role_may_transition(role: Role, current: TicketStatus, target: TicketStatus) -> bool:
    """Whether *role* may move a ticket from *current* to *target*.

    Customers may only close an open ticket. Agents may walk the main
    chain but not take the shortcut. Org admins may take any defined step.
    """
    if not is_defined_transition(current, target):
        return False
    if (current, target) == SHORTCUT:
        return role in SHORTCUT_ROLES
    return role in (Role.AGENT, Role.ORG_ADMIN)
