"""
Redis implementation dari node operation contracts.

Setiap contract adalah Lua script yang di-register sekali per client,
dieksekusi via EVALSHA (fallback ke SCRIPT LOAD otomatis oleh redis-py).
"""

import asyncio
import logging
from typing import List, Optional

import redis.asyncio as aioredis

from .base import LockNode
from ..lock.errors import ConfigurationError
from ..lock.models import LockStatus
from ..lock.scripts import ACQUIRE_SCRIPT, RELEASE_SCRIPT, RENEW_SCRIPT, STATUS_SCRIPT

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_TIMEOUT = 0.5  # seconds


class RedisNode(LockNode):
    """
    Lock node di atas satu Redis instance.

    Client harus dibuat dengan decode_responses=True supaya
    status script mengembalikan str.
    """

    def __init__(self, client: aioredis.Redis, name: Optional[str] = None):
        self.client = client
        self.name = name or self._describe(client)

        self._acquire = client.register_script(ACQUIRE_SCRIPT)
        self._release = client.register_script(RELEASE_SCRIPT)
        self._renew = client.register_script(RENEW_SCRIPT)
        self._status = client.register_script(STATUS_SCRIPT)

    @staticmethod
    def _describe(client: aioredis.Redis) -> str:
        kwargs = client.connection_pool.connection_kwargs
        return f"{kwargs.get('host', 'localhost')}:{kwargs.get('port', 6379)}/{kwargs.get('db', 0)}"

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = DEFAULT_SOCKET_TIMEOUT) -> 'RedisNode':
        """Create node dari redis:// URL"""
        client = aioredis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout
        )
        return cls(client)

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def acquire(self, key: str, token: str, ttl: Optional[int]) -> bool:
        result = await self._acquire(keys=[key], args=[token, "" if ttl is None else str(ttl)])
        return int(result) == 1

    async def release(self, key: str, token: str) -> bool:
        result = await self._release(keys=[key], args=[token])
        return int(result) == 1

    async def renew(self, key: str, token: str, ttl: int) -> bool:
        result = await self._renew(keys=[key], args=[token, str(ttl)])
        return int(result) == 1

    async def status(self, key: str, token: str) -> LockStatus:
        result = await self._status(keys=[key], args=[token])
        if isinstance(result, bytes):
            result = result.decode()
        return LockStatus(result)

    async def clear(self, prefix: str) -> int:
        """Hapus semua lock keys dengan prefix (SCAN + DEL)"""
        removed = 0
        async for key in self.client.scan_iter(match=f"{prefix}*"):
            removed += await self.client.delete(key)
        logger.info(f"Cleared {removed} keys with prefix '{prefix}' on {self.name}")
        return removed

    async def aclose(self):
        await self.client.aclose()


async def connect_nodes(urls: List[str],
                        socket_timeout: float = DEFAULT_SOCKET_TIMEOUT) -> List[RedisNode]:
    """
    Connect ke semua Redis nodes.

    Node yang tidak reachable di-log dan di-skip.

    Raises:
        ConfigurationError: jika urls kosong atau tidak ada node yang reachable
    """
    if not urls:
        raise ConfigurationError("No Redis connection options provided")

    logger.info(f"Connecting to {len(urls)} Redis instance(s)")

    candidates = [RedisNode.from_url(url, socket_timeout) for url in urls]
    results = await asyncio.gather(*(node.ping() for node in candidates), return_exceptions=True)

    nodes = []
    for node, result in zip(candidates, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to connect to Redis on {node.name}: {result}")
            await node.aclose()
        elif isinstance(result, BaseException):
            # CancelledError, KeyboardInterrupt: jangan ditelan
            for candidate in candidates:
                await candidate.aclose()
            raise result
        else:
            logger.debug(f"Connected to Redis on {node.name}")
            nodes.append(node)

    if not nodes:
        raise ConfigurationError("None of the configured Redis nodes is reachable")

    return nodes
