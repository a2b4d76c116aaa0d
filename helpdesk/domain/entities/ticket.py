"""Ticket entity — a customer request inside one organization."""

from dataclasses import dataclass
from datetime import datetime

from helpdesk.domain.value_objects.enums import TicketStatus


@dataclass
class Ticket:
    id: int | None
    organization_id: str
    customer_id: str
    title: str
    description: str | None = None
    status: TicketStatus = TicketStatus.OPEN
    assigned_agent_id: str | None = None
    assigned_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    resolved_at: datetime | None = None
    closed_at: datetime | None = None


@dataclass
class TicketHistory:
    id: int | None
    ticket_id: int
    user_id: str | None
    field_name: str
    old_value: str | None
    new_value: str | None
    created_at: datetime | None = None
