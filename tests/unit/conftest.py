"""
Shared fixtures dan test doubles untuk lock tests.
"""

import asyncio
from typing import List, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from quorumlock.lock.coordinator import LockCoordinator
from quorumlock.lock.models import LockStatus
from quorumlock.nodes.base import LockNode
from quorumlock.nodes.memory_node import InMemoryNode


class FailingNode(LockNode):
    """Node yang selalu gagal seperti Redis yang down"""

    def __init__(self, name: str = "down"):
        self.name = name
        self.calls: List[str] = []

    def _fail(self, operation: str):
        self.calls.append(operation)
        raise RedisConnectionError(f"{self.name} is unreachable")

    async def acquire(self, key: str, token: str, ttl: Optional[int]) -> bool:
        self._fail('acquire')

    async def release(self, key: str, token: str) -> bool:
        self._fail('release')

    async def renew(self, key: str, token: str, ttl: int) -> bool:
        self._fail('renew')

    async def status(self, key: str, token: str) -> LockStatus:
        self._fail('status')


class SlowNode(InMemoryNode):
    """In-memory node dengan latency di setiap acquire"""

    def __init__(self, name: str = "slow", delay: float = 0.05):
        super().__init__(name)
        self.delay = delay
        self.releases = 0

    async def acquire(self, key: str, token: str, ttl: Optional[int]) -> bool:
        await asyncio.sleep(self.delay)
        return await super().acquire(key, token, ttl)

    async def release(self, key: str, token: str) -> bool:
        self.releases += 1
        return await super().release(key, token)


@pytest.fixture
def memory_nodes():
    """Tiga in-memory nodes (quorum = 2)"""
    return [InMemoryNode(f"memory-{i}") for i in range(1, 4)]


@pytest.fixture
def coordinator(memory_nodes):
    return LockCoordinator(memory_nodes, retry_delay=10)
