"""Assignment settings administration — strategy switch and rotation queue rebuilds."""

from __future__ import annotations

import logging

from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.application.ports.organization_repo import OrganizationRepository
from helpdesk.application.use_cases.common import resolve_principal
from helpdesk.application.use_cases.rotation_queue import RotationQueueManager
from helpdesk.domain.entities.membership import Principal
from helpdesk.domain.entities.organization import AssignmentSettings
from helpdesk.domain.errors import AuthorizationDenied, ConfigurationError
from helpdesk.domain.policies.authorization import authorize_admin
from helpdesk.domain.value_objects.enums import AssignmentAlgo, DenyReason

logger = logging.getLogger(__name__)


class _OrgAdminUseCase:
    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        timeout: float = 2.0,
    ):
        self._orgs = organizations
        self._memberships = memberships
        self._timeout = timeout

    async def _principal(self, organization_id: str, user_id: str) -> Principal | None:
        if await self._orgs.get_by_id(organization_id) is None:
            raise ConfigurationError(organization_id)
        return await resolve_principal(
            self._memberships, organization_id, user_id, self._timeout
        )

    async def _require_admin(self, organization_id: str, user_id: str) -> None:
        decision = authorize_admin(await self._principal(organization_id, user_id))
        if not decision.allowed:
            raise AuthorizationDenied(decision.reason, decision.detail)


class GetAssignmentSettingsUseCase(_OrgAdminUseCase):
    """Any member of the organization may read its settings."""

    async def execute(self, organization_id: str, user_id: str) -> AssignmentSettings:
        org = await self._orgs.get_by_id(organization_id)
        if org is None:
            raise ConfigurationError(organization_id)
        principal = await resolve_principal(
            self._memberships, organization_id, user_id, self._timeout
        )
        if principal is None:
            raise AuthorizationDenied(
                DenyReason.NOT_A_MEMBER, "Not a member of this organization"
            )
        return org.settings


class UpdateAssignmentSettingsUseCase(_OrgAdminUseCase):
    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        rotation: RotationQueueManager,
        timeout: float = 2.0,
    ):
        super().__init__(organizations, memberships, timeout)
        self._rotation = rotation

    async def execute(
        self,
        organization_id: str,
        user_id: str,
        auto_assign: bool,
        algo: AssignmentAlgo,
        rebuild: bool = False,
    ) -> AssignmentSettings:
        """Store new settings; with *rebuild* also replace the rotation queue.

        Raises:
            ConfigurationError: unknown organization.
            AuthorizationDenied: caller is not an org admin.
            TransientStoreError: the queue store failed during the rebuild.
        """
        await self._require_admin(organization_id, user_id)

        updated = await self._orgs.update_assignment_settings(
            organization_id, AssignmentSettings(auto_assign=auto_assign, assignment_algo=algo)
        )
        if updated is None:
            raise ConfigurationError(organization_id)
        logger.info(
            "Org %s: assignment settings set to auto_assign=%s algo=%s by %s",
            organization_id, updated.auto_assign, updated.assignment_algo.value, user_id,
        )

        if rebuild:
            await self._rotation.force_rebuild(organization_id)
        return updated


class RebuildRotationQueueUseCase(_OrgAdminUseCase):
    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        rotation: RotationQueueManager,
        timeout: float = 2.0,
    ):
        super().__init__(organizations, memberships, timeout)
        self._rotation = rotation

    async def execute(self, organization_id: str, user_id: str) -> int:
        await self._require_admin(organization_id, user_id)
        return await self._rotation.force_rebuild(organization_id)
