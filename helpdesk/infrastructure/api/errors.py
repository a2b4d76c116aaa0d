"""Translate domain errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from helpdesk.domain.errors import (
    AuthorizationDenied,
    ConfigurationError,
    HelpdeskError,
    InvalidTicketUpdateError,
    TicketNotFoundError,
    TransientStoreError,
)
from helpdesk.domain.value_objects.enums import DenyReason

_DENY_STATUS: dict[DenyReason, int] = {
    # Tickets the caller cannot see look exactly like missing ones.
    DenyReason.NOT_VISIBLE: 404,
    DenyReason.INVALID_TRANSITION: 409,
    DenyReason.TERMINAL_STATE: 409,
}


def to_http(exc: HelpdeskError) -> HTTPException:
    if isinstance(exc, AuthorizationDenied):
        status = _DENY_STATUS.get(exc.reason, 403)
        if status == 404:
            return HTTPException(status_code=404, detail={"error": "Ticket not found"})
        return HTTPException(
            status_code=status, detail={"error": exc.detail, "reason": exc.reason.value}
        )
    if isinstance(exc, (ConfigurationError, TicketNotFoundError)):
        return HTTPException(status_code=404, detail={"error": str(exc)})
    if isinstance(exc, InvalidTicketUpdateError):
        return HTTPException(status_code=400, detail={"error": str(exc)})
    if isinstance(exc, TransientStoreError):
        return HTTPException(status_code=503, detail={"error": "Backing store unavailable"})
    return HTTPException(status_code=500, detail={"error": str(exc)})
