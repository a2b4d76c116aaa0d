"""Helpers shared by the use cases: bounded store calls and principal resolution."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.domain.entities.membership import Principal
from helpdesk.domain.errors import AuthorizationDenied, TransientStoreError
from helpdesk.domain.value_objects.enums import DenyReason

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def bounded(call: Awaitable[T], timeout: float, what: str) -> T:
    """Await a store call, turning a timeout into TransientStoreError."""
    try:
        return await asyncio.wait_for(call, timeout)
    except asyncio.TimeoutError as e:
        raise TransientStoreError(f"{what} timed out after {timeout}s") from e


async def resolve_principal(
    memberships: MembershipRepository,
    organization_id: str,
    user_id: str,
    timeout: float,
) -> Principal | None:
    """Look up the caller's role in *organization_id*.

    Returns None when the user is not a member. If the directory cannot be
    reached the request is denied outright rather than guessed.
    """
    try:
        membership = await bounded(
            memberships.get_membership(organization_id, user_id),
            timeout,
            "membership lookup",
        )
    except TransientStoreError as e:
        logger.warning(
            "Cannot verify membership of user %s in org %s: %s",
            user_id, organization_id, e,
        )
        raise AuthorizationDenied(
            DenyReason.UNVERIFIABLE, "Membership could not be verified"
        ) from e
    return Principal.from_membership(membership) if membership else None
