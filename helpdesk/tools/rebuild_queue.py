"""Force-rebuild the round-robin queue of one organization.

Usage:
    python -m helpdesk.tools.rebuild_queue <organization-id>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from helpdesk.adapters.persistence.database import async_session_factory, engine
from helpdesk.adapters.persistence.repositories import (
    SqlMembershipRepository,
    SqlOrganizationRepository,
)
from helpdesk.adapters.redis_queue.client import close_redis, get_redis
from helpdesk.adapters.redis_queue.rotation_queue import RedisRotationQueue
from helpdesk.application.use_cases.rotation_queue import RotationQueueManager
from helpdesk.config import settings
from helpdesk.domain.errors import TransientStoreError

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def rebuild(organization_id: str) -> int:
    async with async_session_factory() as session:
        if await SqlOrganizationRepository(session).get_by_id(organization_id) is None:
            raise SystemExit(f"Organization not found: {organization_id}")
        queue = RedisRotationQueue(get_redis())
        manager = RotationQueueManager(
            queue, SqlMembershipRepository(session), timeout=settings.store_timeout_seconds
        )
        count = await manager.force_rebuild(organization_id)
        logger.info("Queue now: %s", await queue.snapshot(organization_id))
        return count


async def _main(organization_id: str) -> int:
    try:
        return await rebuild(organization_id)
    finally:
        await close_redis()
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Rebuild an organization's RR queue")
    parser.add_argument("organization_id")
    args = parser.parse_args(argv)
    try:
        count = asyncio.run(_main(args.organization_id))
    except TransientStoreError as e:
        logger.error("Rebuild failed: %s", e)
        sys.exit(1)
    logger.info("Enqueued %d agents", count)


if __name__ == "__main__":
    main()
