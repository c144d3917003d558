"""Lock package initialization"""

from .errors import (
    LockError,
    ConfigurationError,
    LockAcquisitionError,
    LockRemovalError,
    LockRenewalError,
)
from .models import AcquireOptions, LockedResource, LockStatus
from .tokens import generate_token
from .coordinator import LockCoordinator

__all__ = [
    'LockError', 'ConfigurationError', 'LockAcquisitionError', 'LockRemovalError',
    'LockRenewalError', 'AcquireOptions', 'LockedResource', 'LockStatus',
    'generate_token', 'LockCoordinator',
]
