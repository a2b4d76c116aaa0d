"""Dispatcher — choose which agent (if any) a new ticket is routed to."""

from __future__ import annotations

import logging
from collections.abc import Collection

from helpdesk.application.ports.availability_repo import AvailabilityRepository
from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.application.ports.organization_repo import OrganizationRepository
from helpdesk.application.ports.rotation_queue import RotationQueue
from helpdesk.application.use_cases.common import bounded
from helpdesk.application.use_cases.rotation_queue import RotationQueueManager
from helpdesk.domain.entities.dispatch_result import DispatchResult
from helpdesk.domain.entities.organization import Organization
from helpdesk.domain.errors import (
    ConfigurationError,
    InconsistencyWarning,
    TransientStoreError,
)
from helpdesk.domain.policies.least_active import pick_any_agent, pick_least_active
from helpdesk.domain.value_objects.enums import AssignmentAlgo, DispatchStrategy

logger = logging.getLogger(__name__)


class Dispatcher:
    """Runs the assignment fallback chain for one organization.

    Chain, stopping at the first hit:
    1. auto_assign off -> unassigned
    2. Round-robin (only when configured): atomic rotate, lazy rebuild on empty
    3. Least-active: eligible availability rows, fewest open tickets first
    4. Any agent of the organization, ignoring availability
    5. Unassigned

    Store failures and timeouts count as "nothing found" for the tier that hit
    them; only an unknown organization is raised to the caller.
    """

    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        availability: AvailabilityRepository,
        queue: RotationQueue,
        timeout: float = 2.0,
        revalidate_membership: bool = True,
    ):
        self._orgs = organizations
        self._memberships = memberships
        self._availability = availability
        self._queue = queue
        self._rotation = RotationQueueManager(queue, memberships, timeout=timeout)
        self._timeout = timeout
        self._revalidate = revalidate_membership

    async def assign(
        self, organization_id: str, exclude: Collection[str] = frozenset()
    ) -> DispatchResult:
        """Select zero or one agent for a new ticket in *organization_id*.

        Raises:
            ConfigurationError: if the organization does not exist.
        """
        org = await self._load_organization(organization_id)
        if org is None:
            return DispatchResult.unassigned(degraded=True)

        if not org.settings.auto_assign:
            logger.debug("Org %s: auto-assign disabled", organization_id)
            return DispatchResult.unassigned()

        degraded = False

        if org.settings.assignment_algo == AssignmentAlgo.ROUND_ROBIN:
            try:
                agent_id = await self._round_robin(organization_id, exclude)
            except TransientStoreError as e:
                logger.warning("Org %s: round-robin unavailable: %s", organization_id, e)
                agent_id, degraded = None, True
            if agent_id:
                logger.info("Org %s: assigned via round-robin to %s", organization_id, agent_id)
                return DispatchResult(agent_id, DispatchStrategy.ROUND_ROBIN, degraded)

        try:
            agent_id = await self._least_active(organization_id, exclude)
        except TransientStoreError as e:
            logger.warning("Org %s: availability store unavailable: %s", organization_id, e)
            agent_id, degraded = None, True
        if agent_id:
            logger.info("Org %s: assigned via least-active to %s", organization_id, agent_id)
            return DispatchResult(agent_id, DispatchStrategy.LEAST_ACTIVE, degraded)

        try:
            agent_id = await self._any_agent(organization_id, exclude)
        except TransientStoreError as e:
            logger.warning("Org %s: membership directory unavailable: %s", organization_id, e)
            agent_id, degraded = None, True
        if agent_id:
            logger.info("Org %s: assigned via fallback to %s", organization_id, agent_id)
            return DispatchResult(agent_id, DispatchStrategy.ANY_AGENT, degraded)

        logger.info("Org %s: no agent available for auto-assignment", organization_id)
        return DispatchResult.unassigned(degraded=degraded)

    async def _load_organization(self, organization_id: str) -> Organization | None:
        try:
            org = await bounded(
                self._orgs.get_by_id(organization_id), self._timeout, "assignment settings"
            )
        except TransientStoreError as e:
            logger.warning("Org %s: settings unavailable, leaving unassigned: %s", organization_id, e)
            return None
        if org is None:
            raise ConfigurationError(organization_id)
        return org

    async def _round_robin(self, organization_id: str, exclude: Collection[str]) -> str | None:
        agent_id = await bounded(
            self._queue.rotate(organization_id), self._timeout, "rotation queue"
        )
        if agent_id is None:
            enqueued = await self._rotation.rebuild_if_empty(organization_id)
            logger.info(
                "Org %s: rotation queue was empty, enqueued %d agents", organization_id, enqueued
            )
            agent_id = await bounded(
                self._queue.rotate(organization_id), self._timeout, "rotation queue"
            )
        if agent_id is None:
            return None

        if agent_id in exclude:
            logger.info("Org %s: rotated agent %s is excluded, falling through", organization_id, agent_id)
            return None

        try:
            stale = await self._is_stale(organization_id, agent_id)
        except TransientStoreError:
            if self._revalidate:
                raise
            logger.warning("Org %s: could not verify rotated agent %s", organization_id, agent_id)
            return agent_id

        if stale:
            logger.warning(
                "Org %s: rotation queue returned %s, who is no longer an agent here",
                organization_id, agent_id,
                extra={"warning_category": InconsistencyWarning.__name__},
            )
            if self._revalidate:
                return None
        return agent_id

    async def _is_stale(self, organization_id: str, agent_id: str) -> bool:
        membership = await bounded(
            self._memberships.get_membership(organization_id, agent_id),
            self._timeout,
            "membership lookup",
        )
        return membership is None or not membership.is_agent()

    async def _least_active(self, organization_id: str, exclude: Collection[str]) -> str | None:
        rows = await bounded(
            self._availability.list_eligible(organization_id), self._timeout, "availability"
        )
        chosen = pick_least_active(rows, exclude)
        return chosen.user_id if chosen else None

    async def _any_agent(self, organization_id: str, exclude: Collection[str]) -> str | None:
        agents = await bounded(
            self._memberships.list_agents(organization_id), self._timeout, "agent roster"
        )
        chosen = pick_any_agent(agents, exclude)
        return chosen.user_id if chosen else None
