"""
In-memory lock node untuk testing dan local development.

Setiap method berjalan tanpa await di tengahnya, jadi atomic
relatif terhadap event loop.
"""

import time
from typing import Dict, Optional, Tuple

from .base import LockNode
from ..lock.models import LockStatus


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class InMemoryNode(LockNode):
    """Lock node yang menyimpan keys di dict: key -> (token, expires_at_ms)"""

    def __init__(self, name: str = "memory"):
        self.name = name
        self._store: Dict[str, Tuple[str, Optional[float]]] = {}

    def _get(self, key: str) -> Optional[str]:
        entry = self._store.get(key)
        if entry is None:
            return None

        token, expires_at = entry
        if expires_at is not None and _monotonic_ms() >= expires_at:
            # Expired, hapus lazily
            del self._store[key]
            return None
        return token

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        return None if ttl is None else _monotonic_ms() + ttl

    async def acquire(self, key: str, token: str, ttl: Optional[int]) -> bool:
        if self._get(key) is not None:
            return False
        self._store[key] = (token, self._expiry(ttl))
        return True

    async def release(self, key: str, token: str) -> bool:
        if self._get(key) != token:
            return False
        del self._store[key]
        return True

    async def renew(self, key: str, token: str, ttl: int) -> bool:
        if self._get(key) != token:
            return False
        self._store[key] = (token, self._expiry(ttl))
        return True

    async def status(self, key: str, token: str) -> LockStatus:
        current = self._get(key)
        if current is None:
            return LockStatus.AVAILABLE
        if current == token:
            return LockStatus.ACQUIRED
        return LockStatus.LOCKED

    async def clear(self, prefix: str) -> int:
        keys = [key for key in self._store if key.startswith(prefix)]
        for key in keys:
            del self._store[key]
        return len(keys)

    def __len__(self):
        return sum(1 for key in list(self._store) if self._get(key) is not None)

    def __contains__(self, key: str):
        return self._get(key) is not None
