"""RotationQueueManager — (re)populates the round-robin queue from the membership directory."""

from __future__ import annotations

import logging

from helpdesk.application.ports.membership_repo import MembershipRepository
from helpdesk.application.ports.rotation_queue import RotationQueue
from helpdesk.application.use_cases.common import bounded
from helpdesk.domain.policies.least_active import roster_order

logger = logging.getLogger(__name__)


class RotationQueueManager:
    """Rebuilds are always wholesale: the full current Agent roster in join order.

    The lazy rebuild's emptiness check is not atomic with the push, so two
    concurrent callers may both push the roster. The queue then holds every
    agent twice, which only skews rotation until the next forced rebuild.
    A roster is always written with a single command, so it is never partial.
    """

    def __init__(
        self,
        queue: RotationQueue,
        memberships: MembershipRepository,
        timeout: float = 2.0,
    ):
        self._queue = queue
        self._memberships = memberships
        self._timeout = timeout

    async def roster(self, organization_id: str) -> list[str]:
        agents = await bounded(
            self._memberships.list_agents(organization_id), self._timeout, "agent roster"
        )
        return [m.user_id for m in roster_order(a for a in agents if a.is_agent())]

    async def rebuild_if_empty(self, organization_id: str) -> int:
        """Push the roster if the queue is empty. Returns the number of agents enqueued."""
        length = await bounded(
            self._queue.length(organization_id), self._timeout, "rotation queue length"
        )
        if length > 0:
            return 0

        agent_ids = await self.roster(organization_id)
        if not agent_ids:
            logger.info("Org %s has no agents, rotation queue stays empty", organization_id)
            return 0

        await bounded(
            self._queue.push_all(organization_id, agent_ids),
            self._timeout,
            "rotation queue push",
        )
        logger.info(
            "Rebuilt rotation queue for org %s with %d agents", organization_id, len(agent_ids)
        )
        return len(agent_ids)

    async def force_rebuild(self, organization_id: str) -> int:
        """Replace the queue with the current roster. Returns the number of agents enqueued."""
        agent_ids = await self.roster(organization_id)
        await bounded(
            self._queue.replace(organization_id, agent_ids),
            self._timeout,
            "rotation queue replace",
        )
        logger.info(
            "Force-rebuilt rotation queue for org %s with %d agents",
            organization_id, len(agent_ids),
        )
        return len(agent_ids)
