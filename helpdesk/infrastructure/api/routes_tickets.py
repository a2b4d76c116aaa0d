"""Ticket endpoints — scoped listing, creation with dispatch, updates."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.adapters.persistence.database import get_session
from helpdesk.application.use_cases.create_ticket import CreateTicketUseCase
from helpdesk.application.use_cases.query_tickets import QueryTicketsUseCase
from helpdesk.application.use_cases.update_ticket import TicketChanges, UpdateTicketUseCase
from helpdesk.domain.entities.ticket import Ticket, TicketHistory
from helpdesk.domain.errors import HelpdeskError
from helpdesk.domain.value_objects.enums import TicketStatus
from helpdesk.infrastructure.api.dependencies import (
    get_create_ticket_uc,
    get_current_user_id,
    get_query_tickets_uc,
    get_update_ticket_uc,
)
from helpdesk.infrastructure.api.errors import to_http

router = APIRouter(tags=["tickets"])

# ── Request schemas ─────────────────────────────────────────────────


class CreateTicketRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None


class UpdateTicketRequest(BaseModel):
    status: TicketStatus | None = None
    description: str | None = None
    assigned_agent_id: str | None = None


# ── Endpoints ───────────────────────────────────────────────────────


@router.get("/organizations/{org_id}/tickets")
async def list_tickets(
    org_id: str,
    user_id: str = Depends(get_current_user_id),
    uc: QueryTicketsUseCase = Depends(get_query_tickets_uc),
):
    """Tickets of the organization the caller is allowed to see."""
    try:
        tickets = await uc.list_for(org_id, user_id)
    except HelpdeskError as e:
        raise to_http(e)
    return {"total": len(tickets), "tickets": [_serialize_ticket(t) for t in tickets]}


@router.post("/organizations/{org_id}/tickets", status_code=201)
async def create_ticket(
    org_id: str,
    body: CreateTicketRequest,
    user_id: str = Depends(get_current_user_id),
    uc: CreateTicketUseCase = Depends(get_create_ticket_uc),
    session: AsyncSession = Depends(get_session),
):
    """Create a ticket and auto-assign it according to the organization's settings."""
    try:
        result = await uc.execute(org_id, user_id, body.title, body.description)
    except HelpdeskError as e:
        raise to_http(e)
    await session.commit()

    data = _serialize_ticket(result.ticket)
    data["dispatch"] = {
        "strategy": result.dispatch.strategy.value,
        "degraded": result.dispatch.degraded,
    }
    return data


@router.get("/tickets/{ticket_id}")
async def get_ticket(
    ticket_id: int,
    user_id: str = Depends(get_current_user_id),
    uc: QueryTicketsUseCase = Depends(get_query_tickets_uc),
):
    try:
        ticket = await uc.get(ticket_id, user_id)
    except HelpdeskError as e:
        raise to_http(e)
    return _serialize_ticket(ticket)


@router.get("/tickets/{ticket_id}/history")
async def get_ticket_history(
    ticket_id: int,
    user_id: str = Depends(get_current_user_id),
    uc: QueryTicketsUseCase = Depends(get_query_tickets_uc),
):
    try:
        entries = await uc.history(ticket_id, user_id)
    except HelpdeskError as e:
        raise to_http(e)
    return {"ticket_id": ticket_id, "history": [_serialize_history(h) for h in entries]}


@router.patch("/tickets/{ticket_id}")
async def update_ticket(
    ticket_id: int,
    body: UpdateTicketRequest,
    user_id: str = Depends(get_current_user_id),
    uc: UpdateTicketUseCase = Depends(get_update_ticket_uc),
    session: AsyncSession = Depends(get_session),
):
    """Change status, description or assignee. All-or-nothing."""
    changes = TicketChanges(
        status=body.status,
        description=body.description,
        assigned_agent_id=body.assigned_agent_id,
    )
    try:
        ticket = await uc.execute(ticket_id, user_id, changes)
    except HelpdeskError as e:
        raise to_http(e)
    await session.commit()
    return _serialize_ticket(ticket)


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _serialize_ticket(t: Ticket) -> dict:
    return {
        "id": t.id,
        "organization_id": t.organization_id,
        "customer_id": t.customer_id,
        "title": t.title,
        "description": t.description,
        "status": t.status.value,
        "assigned_agent_id": t.assigned_agent_id,
        "assigned_by": t.assigned_by,
        "created_at": _iso(t.created_at),
        "updated_at": _iso(t.updated_at),
        "resolved_at": _iso(t.resolved_at),
        "closed_at": _iso(t.closed_at),
    }


def _serialize_history(h: TicketHistory) -> dict:
    return {
        "field_name": h.field_name,
        "old_value": h.old_value,
        "new_value": h.new_value,
        "user_id": h.user_id,
        "created_at": _iso(h.created_at),
    }
