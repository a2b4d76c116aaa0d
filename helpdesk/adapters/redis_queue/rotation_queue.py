"""Redis rotation queue: one list per organization."""

from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from helpdesk.application.ports.rotation_queue import RotationQueue
from helpdesk.domain.errors import TransientStoreError

logger = logging.getLogger(__name__)


def queue_key(organization_id: str) -> str:
    return f"org:{organization_id}:agents:rr"


class RedisRotationQueue(RotationQueue):
    """Round-robin queue backed by a Redis list.

    Rotation is a single LMOVE from the head of the list to its own tail, so
    concurrent dispatches never lose or duplicate an entry while rotating.
    """

    def __init__(self, client: Redis):
        self._r = client

    async def rotate(self, organization_id: str) -> str | None:
        key = queue_key(organization_id)
        try:
            agent_id = await self._r.lmove(key, key, "LEFT", "RIGHT")
        except RedisError as e:
            raise TransientStoreError(f"rotation queue: {e}") from e
        return _decode(agent_id)

    async def length(self, organization_id: str) -> int:
        try:
            return int(await self._r.llen(queue_key(organization_id)))
        except RedisError as e:
            raise TransientStoreError(f"rotation queue: {e}") from e

    async def push_all(self, organization_id: str, agent_ids: list[str]) -> int:
        if not agent_ids:
            return await self.length(organization_id)
        try:
            # One RPUSH with every id: the roster lands whole or not at all.
            return int(await self._r.rpush(queue_key(organization_id), *agent_ids))
        except RedisError as e:
            raise TransientStoreError(f"rotation queue: {e}") from e

    async def replace(self, organization_id: str, agent_ids: list[str]) -> int:
        key = queue_key(organization_id)
        try:
            async with self._r.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                if agent_ids:
                    pipe.rpush(key, *agent_ids)
                results = await pipe.execute()
        except RedisError as e:
            raise TransientStoreError(f"rotation queue: {e}") from e
        logger.debug("Replaced rotation queue %s: %s", key, results)
        return len(agent_ids)

    async def snapshot(self, organization_id: str) -> list[str]:
        try:
            items = await self._r.lrange(queue_key(organization_id), 0, -1)
        except RedisError as e:
            raise TransientStoreError(f"rotation queue: {e}") from e
        return [_decode(i) for i in items]


def _decode(value: bytes | str | None) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value
