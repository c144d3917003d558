"""
Data model untuk lock coordinator.
"""

import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


def now_ms() -> int:
    """Wall clock dalam milliseconds"""
    return int(time.time() * 1000)


class LockStatus(Enum):
    """Jawaban dari status probe"""
    ACQUIRED = "ACQUIRED"    # node menyimpan token kita
    LOCKED = "LOCKED"        # key ada, tapi dengan token lain
    AVAILABLE = "AVAILABLE"  # key tidak ada


@dataclass(frozen=True)
class AcquireOptions:
    """
    Options untuk satu lock() call, sudah di-resolve dengan defaults.

    ttl=None berarti lock tidak pernah expire,
    fail_after=None berarti retry tanpa batas.
    """
    ttl: Optional[int]
    retry_delay: int
    fail_after: Optional[int]


@dataclass(frozen=True)
class LockedResource:
    """
    Belief bahwa process ini memegang lock.

    Authoritative hanya selama minimal quorum nodes masih
    menyimpan resource -> token yang belum expire.
    """
    resource: str
    token: str
    ttl: Optional[int]
    acquired_at: int
    expires_at: Optional[int]

    def is_expired(self, now: Optional[int] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else now_ms()) >= self.expires_at

    def remaining_ms(self, now: Optional[int] = None) -> Optional[int]:
        """Sisa validity dalam ms, None untuk permanent lock"""
        if self.expires_at is None:
            return None
        return max(0, self.expires_at - (now if now is not None else now_ms()))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LockedResource':
        return cls(
            resource=data['resource'],
            token=data['token'],
            ttl=data.get('ttl'),
            acquired_at=data.get('acquired_at', 0),
            expires_at=data.get('expires_at')
        )

    def __repr__(self):
        return f"LockedResource({self.resource}, ttl={self.ttl}, expires_at={self.expires_at})"
