"""
Error taxonomy untuk lock coordinator.

Semua error turunan dari LockError supaya caller bisa menangkap
satu base class saja.
"""

from typing import Optional


class LockError(Exception):
    """Base class untuk semua lock errors"""

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.resource = resource


class ConfigurationError(LockError):
    """Node set kosong, tidak ada node reachable, atau config invalid"""


class LockAcquisitionError(LockError):
    """
    Lock tidak bisa di-acquire.

    Raised saat majority nodes error dalam satu round,
    atau saat deadline fail_after terlewati.
    """

    def __init__(self, message: str, resource: Optional[str] = None, attempts: int = 0):
        super().__init__(message, resource)
        self.attempts = attempts


class LockRemovalError(LockError):
    """Tidak ada satu node pun yang acknowledge release"""


class LockRenewalError(LockError):
    """Lock permanent (tanpa TTL), atau renewal tidak mencapai quorum"""
