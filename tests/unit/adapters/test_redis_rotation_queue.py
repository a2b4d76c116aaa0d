"""Tests for RedisRotationQueue against fakeredis."""

import asyncio

import pytest

pytest.importorskip("fakeredis", reason="fakeredis is required for Redis adapter unit tests")

import fakeredis
from redis.exceptions import ConnectionError as RedisConnectionError

from helpdesk.adapters.redis_queue.rotation_queue import RedisRotationQueue, queue_key
from helpdesk.domain.errors import TransientStoreError

ORG = "org-1"


@pytest.fixture
def client():
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def queue(client):
    return RedisRotationQueue(client)


def test_queue_key_is_per_organization():
    assert queue_key("org-1") == "org:org-1:agents:rr"
    assert queue_key("org-1") != queue_key("org-2")


@pytest.mark.asyncio
async def test_rotate_on_missing_key_returns_none(queue):
    assert await queue.rotate(ORG) is None
    assert await queue.length(ORG) == 0


@pytest.mark.asyncio
async def test_rotate_moves_head_to_tail(queue, client):
    await queue.push_all(ORG, ["A", "B", "C"])

    assert await queue.rotate(ORG) == "A"
    assert await client.lrange(queue_key(ORG), 0, -1) == ["B", "C", "A"]
    assert await queue.rotate(ORG) == "B"
    assert await queue.snapshot(ORG) == ["C", "A", "B"]


@pytest.mark.asyncio
async def test_concurrent_rotations_never_lose_entries(queue):
    await queue.push_all(ORG, ["A", "B", "C"])
    picked = await asyncio.gather(*(queue.rotate(ORG) for _ in range(30)))

    assert sorted(picked) == ["A"] * 10 + ["B"] * 10 + ["C"] * 10
    assert sorted(await queue.snapshot(ORG)) == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_push_all_appends_and_reports_length(queue):
    assert await queue.push_all(ORG, ["A", "B"]) == 2
    assert await queue.push_all(ORG, ["A", "B"]) == 4
    assert await queue.push_all(ORG, []) == 4


@pytest.mark.asyncio
async def test_replace_swaps_whole_list(queue):
    await queue.push_all(ORG, ["X", "A", "A"])
    assert await queue.replace(ORG, ["A", "B", "C"]) == 3
    assert await queue.snapshot(ORG) == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_replace_with_empty_roster_deletes_key(queue, client):
    await queue.push_all(ORG, ["A"])
    assert await queue.replace(ORG, []) == 0
    assert await client.exists(queue_key(ORG)) == 0


@pytest.mark.asyncio
async def test_organizations_do_not_share_queues(queue):
    await queue.push_all("org-1", ["A"])
    await queue.push_all("org-2", ["Z"])
    assert await queue.rotate("org-2") == "Z"
    assert await queue.snapshot("org-1") == ["A"]


@pytest.mark.asyncio
async def test_redis_errors_become_transient(queue, client, monkeypatch):
    async def down(*args, **kwargs):
        raise RedisConnectionError("connection refused")

    monkeypatch.setattr(client, "lmove", down)
    monkeypatch.setattr(client, "llen", down)

    with pytest.raises(TransientStoreError):
        await queue.rotate(ORG)
    with pytest.raises(TransientStoreError):
        await queue.length(ORG)
