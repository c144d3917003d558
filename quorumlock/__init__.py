"""
quorumlock

Distributed lock di atas beberapa independent Redis nodes:
- Quorum-based acquisition (Redlock)
- TTL dan clock drift accounting
- Renewal, release, dan status probe
- HTTP gateway dan Prometheus metrics
"""

from .lock import (
    AcquireOptions,
    ConfigurationError,
    LockAcquisitionError,
    LockCoordinator,
    LockError,
    LockRemovalError,
    LockRenewalError,
    LockStatus,
    LockedResource,
    generate_token,
)
from .nodes import InMemoryNode, LockNode, RedisNode

__version__ = "1.0.0"

__all__ = [
    'AcquireOptions', 'ConfigurationError', 'LockAcquisitionError', 'LockCoordinator',
    'LockError', 'LockRemovalError', 'LockRenewalError', 'LockStatus', 'LockedResource',
    'generate_token', 'InMemoryNode', 'LockNode', 'RedisNode',
]
