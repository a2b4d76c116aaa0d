"""Domain error taxonomy.

Dispatch failures degrade gracefully (the ticket is still created);
authorization failures are hard stops.
"""

from __future__ import annotations

from helpdesk.domain.value_objects.enums import DenyReason


class HelpdeskError(Exception):
    """Base class for all domain errors."""


class ConfigurationError(HelpdeskError):
    """The organization a ticket belongs to cannot be resolved."""

    def __init__(self, organization_id: str):
        super().__init__(f"Organization not found: {organization_id}")
        self.organization_id = organization_id


class TransientStoreError(HelpdeskError):
    """A backing store timed out or is unavailable."""


class InconsistencyWarning(UserWarning):
    """Stale shared state observed during dispatch. Logged, never raised."""


class AuthorizationDenied(HelpdeskError):
    def __init__(self, reason: DenyReason, detail: str | None = None):
        super().__init__(detail or reason.value)
        self.reason = reason
        self.detail = detail or reason.value


class TicketNotFoundError(HelpdeskError):
    def __init__(self, ticket_id: int):
        super().__init__(f"Ticket not found: {ticket_id}")
        self.ticket_id = ticket_id


class InvalidTicketUpdateError(HelpdeskError):
    """The requested change is malformed (no fields, unknown agent, ...)."""
