"""Organization endpoints — assignment settings and rotation queue administration."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.adapters.persistence.database import get_session
from helpdesk.application.use_cases.assignment_settings import (
    GetAssignmentSettingsUseCase,
    RebuildRotationQueueUseCase,
    UpdateAssignmentSettingsUseCase,
)
from helpdesk.domain.entities.organization import AssignmentSettings
from helpdesk.domain.errors import HelpdeskError
from helpdesk.domain.value_objects.enums import AssignmentAlgo
from helpdesk.infrastructure.api.dependencies import (
    get_assignment_settings_uc,
    get_current_user_id,
    get_rebuild_queue_uc,
    get_update_assignment_settings_uc,
)
from helpdesk.infrastructure.api.errors import to_http

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])


class AssignmentSettingsRequest(BaseModel):
    auto_assign: bool = False
    assignment_algo: AssignmentAlgo = AssignmentAlgo.LEAST_ACTIVE
    rebuild_rr: bool = False


def _serialize_settings(s: AssignmentSettings) -> dict:
    return {"auto_assign": s.auto_assign, "assignment_algo": s.assignment_algo.value}


@router.get("/{org_id}/assignment")
async def get_assignment_settings(
    org_id: str,
    user_id: str = Depends(get_current_user_id),
    uc: GetAssignmentSettingsUseCase = Depends(get_assignment_settings_uc),
):
    try:
        current = await uc.execute(org_id, user_id)
    except HelpdeskError as e:
        raise to_http(e)
    return {"settings": _serialize_settings(current)}


@router.put("/{org_id}/assignment")
async def update_assignment_settings(
    org_id: str,
    body: AssignmentSettingsRequest,
    user_id: str = Depends(get_current_user_id),
    uc: UpdateAssignmentSettingsUseCase = Depends(get_update_assignment_settings_uc),
    session: AsyncSession = Depends(get_session),
):
    """Update assignment settings and, optionally, rebuild the RR queue."""
    try:
        updated = await uc.execute(
            org_id, user_id, body.auto_assign, body.assignment_algo, rebuild=body.rebuild_rr
        )
    except HelpdeskError as e:
        logger.warning("Assignment settings update for org %s failed: %s", org_id, e)
        raise to_http(e)
    await session.commit()
    return {"success": True, "settings": _serialize_settings(updated)}


@router.post("/{org_id}/rr/rebuild")
async def rebuild_rotation_queue(
    org_id: str,
    user_id: str = Depends(get_current_user_id),
    uc: RebuildRotationQueueUseCase = Depends(get_rebuild_queue_uc),
):
    """Replace the RR queue with the organization's current agents."""
    try:
        count = await uc.execute(org_id, user_id)
    except HelpdeskError as e:
        logger.warning("RR queue rebuild for org %s failed: %s", org_id, e)
        raise to_http(e)
    return {"success": True, "count": count}
