"""
Unit tests untuk RedisNode: Lua scripts dijalankan di fakeredis.
"""

import asyncio

import pytest

from fakeredis import FakeAsyncRedis, FakeServer

from quorumlock.lock.coordinator import LockCoordinator
from quorumlock.lock.errors import ConfigurationError
from quorumlock.lock.models import LockStatus
from quorumlock.nodes.redis_node import RedisNode, connect_nodes


def make_node(name: str = "fake") -> RedisNode:
    client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    return RedisNode(client, name=name)


@pytest.mark.asyncio
async def test_acquire_with_ttl():
    """SET NX PX: key di-set dengan expiry"""
    node = make_node()

    assert await node.acquire("lock:a", "token-1", 1000) is True
    assert await node.client.get("lock:a") == "token-1"

    pttl = await node.client.pttl("lock:a")
    assert 0 < pttl <= 1000


@pytest.mark.asyncio
async def test_acquire_permanent():
    """Tanpa ttl: key tidak punya expiry"""
    node = make_node()

    assert await node.acquire("lock:a", "token-1", None) is True
    assert await node.client.pttl("lock:a") == -1


@pytest.mark.asyncio
async def test_acquire_if_absent_only():
    """Key yang sudah ada tidak di-overwrite"""
    node = make_node()

    assert await node.acquire("lock:a", "token-1", 1000) is True
    assert await node.acquire("lock:a", "token-2", 1000) is False
    assert await node.client.get("lock:a") == "token-1"


@pytest.mark.asyncio
async def test_acquire_after_expiry():
    node = make_node()

    await node.acquire("lock:a", "token-1", 30)
    await asyncio.sleep(0.08)

    assert await node.acquire("lock:a", "token-2", 1000) is True


@pytest.mark.asyncio
async def test_release_if_owner():
    """Hanya owner yang bisa delete key"""
    node = make_node()
    await node.acquire("lock:a", "token-1", 1000)

    assert await node.release("lock:a", "token-2") is False
    assert await node.client.exists("lock:a") == 1

    assert await node.release("lock:a", "token-1") is True
    assert await node.client.exists("lock:a") == 0

    assert await node.release("lock:a", "token-1") is False


@pytest.mark.asyncio
async def test_renew_if_owner():
    """PEXPIRE hanya jika value == token"""
    node = make_node()
    await node.acquire("lock:a", "token-1", 1000)

    assert await node.renew("lock:a", "token-2", 60000) is False
    assert await node.client.pttl("lock:a") <= 1000

    assert await node.renew("lock:a", "token-1", 60000) is True
    assert await node.client.pttl("lock:a") > 1000


@pytest.mark.asyncio
async def test_renew_missing_key():
    node = make_node()
    assert await node.renew("lock:missing", "token-1", 1000) is False


@pytest.mark.asyncio
async def test_status_if_owner():
    node = make_node()

    assert await node.status("lock:a", "token-1") == LockStatus.AVAILABLE

    await node.acquire("lock:a", "token-1", 1000)
    assert await node.status("lock:a", "token-1") == LockStatus.ACQUIRED
    assert await node.status("lock:a", "token-2") == LockStatus.LOCKED


@pytest.mark.asyncio
async def test_clear_prefix():
    """clear() hanya menghapus keys dengan prefix"""
    node = make_node()
    await node.acquire("lock:a", "t", None)
    await node.acquire("lock:b", "t", None)
    await node.client.set("other:c", "v")

    assert await node.clear("lock:") == 2
    assert await node.client.exists("other:c") == 1

    await node.aclose()


@pytest.mark.asyncio
async def test_coordinator_over_redis_nodes():
    """Full round trip lewat Lua scripts di tiga servers"""
    nodes = [make_node(f"fake-{i}") for i in range(3)]
    coordinator = LockCoordinator(nodes, retry_delay=10)

    locked = await coordinator.lock("orders", ttl=2000)
    assert await coordinator.check_status(locked) == LockStatus.ACQUIRED

    renewed = await coordinator.renew(locked, 5000)
    assert renewed.token == locked.token

    assert await coordinator.unlock(renewed) is True
    assert await coordinator.check_status(locked) == LockStatus.AVAILABLE

    await coordinator.aclose()


@pytest.mark.asyncio
async def test_connect_nodes_requires_urls():
    with pytest.raises(ConfigurationError):
        await connect_nodes([])


@pytest.mark.asyncio
async def test_connect_nodes_none_reachable():
    """Semua nodes unreachable: ConfigurationError"""
    with pytest.raises(ConfigurationError):
        await connect_nodes(["redis://127.0.0.1:1/0"], socket_timeout=0.2)


@pytest.mark.asyncio
async def test_connect_nodes_propagates_cancellation(monkeypatch):
    """CancelledError dari ping tidak dihitung sebagai node unreachable"""
    async def cancelled_ping(self):
        raise asyncio.CancelledError()

    monkeypatch.setattr(RedisNode, "ping", cancelled_ping)

    with pytest.raises(asyncio.CancelledError):
        await connect_nodes(["redis://127.0.0.1:1/0", "redis://127.0.0.1:2/0"])


@pytest.mark.asyncio
async def test_connect_nodes_skips_failed_ping(monkeypatch):
    """Exception biasa dari ping: node di-skip"""
    async def failing_ping(self):
        raise ConnectionError("refused")

    monkeypatch.setattr(RedisNode, "ping", failing_ping)

    with pytest.raises(ConfigurationError):
        await connect_nodes(["redis://127.0.0.1:1/0"])


def test_node_name_from_url():
    node = RedisNode.from_url("redis://redis-a:6380/2")
    assert node.name == "redis-a:6380/2"


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
