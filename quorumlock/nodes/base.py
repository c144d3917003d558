"""
Node operation contracts.

Coordinator hanya butuh empat atomic operations dari setiap node.
Transport failures di-raise sebagai exception; coordinator yang
menangkap dan menghitungnya.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..lock.models import LockStatus


class LockNode(ABC):
    """Handle ke satu key-value store peer yang sudah connected"""

    name: str = "node"

    @abstractmethod
    async def acquire(self, key: str, token: str, ttl: Optional[int]) -> bool:
        """Set key=token hanya jika key belum ada, dengan expiry ttl (ms) jika diberikan"""

    @abstractmethod
    async def release(self, key: str, token: str) -> bool:
        """Delete key hanya jika value == token"""

    @abstractmethod
    async def renew(self, key: str, token: str, ttl: int) -> bool:
        """Reset expiry key ke ttl (ms) hanya jika value == token"""

    @abstractmethod
    async def status(self, key: str, token: str) -> LockStatus:
        """ACQUIRED jika value == token, LOCKED jika key milik orang lain, AVAILABLE jika tidak ada"""

    async def clear(self, prefix: str) -> int:
        """Hapus semua keys dengan prefix. Returns jumlah keys yang dihapus."""
        return 0

    async def aclose(self):
        """Release connection resources"""

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name})"
