"""
Options resolver dan drift calculation.

Per-call overrides di-merge dengan instance defaults menjadi satu
AcquireOptions immutable per call. Defaults tidak pernah di-mutate.
"""

from typing import Any, Optional

from .errors import ConfigurationError
from .models import AcquireOptions

DEFAULT_PREFIX = "lock:"
DEFAULT_RETRY_DELAY = 100   # milliseconds
DEFAULT_DRIFT_FACTOR = 0.01
DRIFT_CONSTANT = 2          # milliseconds, untuk round trip latency


class _Unset:
    """Sentinel: argument tidak diberikan (beda dengan None)"""

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET: Any = _Unset()


def _check_ttl(ttl: Optional[int], error=ValueError):
    if ttl is not None and (isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0):
        raise error(f"ttl must be a positive integer (ms) or None, got {ttl!r}")


def _check_retry_delay(retry_delay: int, error=ValueError):
    if isinstance(retry_delay, bool) or not isinstance(retry_delay, (int, float)) or retry_delay < 0:
        raise error(f"retry_delay must be >= 0 (ms), got {retry_delay!r}")


def _check_fail_after(fail_after: Optional[int], error=ValueError):
    if fail_after is not None and (isinstance(fail_after, bool) or not isinstance(fail_after, (int, float))
                                   or fail_after < 0):
        raise error(f"fail_after must be >= 0 (ms) or None, got {fail_after!r}")


def validate_defaults(defaults: AcquireOptions, drift_factor: float):
    """Validate instance defaults, raise ConfigurationError jika invalid"""
    _check_ttl(defaults.ttl, ConfigurationError)
    _check_retry_delay(defaults.retry_delay, ConfigurationError)
    _check_fail_after(defaults.fail_after, ConfigurationError)

    if not isinstance(drift_factor, (int, float)) or not 0 <= drift_factor < 1:
        raise ConfigurationError(f"drift_factor must be in [0, 1), got {drift_factor!r}")


def resolve_options(defaults: AcquireOptions,
                    ttl: Any = UNSET,
                    retry_delay: Any = UNSET,
                    fail_after: Any = UNSET) -> AcquireOptions:
    """
    Merge per-call overrides dengan defaults.

    UNSET -> pakai default. None untuk ttl/fail_after adalah nilai
    eksplisit (no expiry / no deadline).

    Returns:
        AcquireOptions baru untuk call ini
    """
    resolved = AcquireOptions(
        ttl=defaults.ttl if ttl is UNSET else ttl,
        retry_delay=defaults.retry_delay if retry_delay is UNSET or retry_delay is None else retry_delay,
        fail_after=defaults.fail_after if fail_after is UNSET else fail_after
    )

    _check_ttl(resolved.ttl)
    _check_retry_delay(resolved.retry_delay)
    _check_fail_after(resolved.fail_after)

    return resolved


def compute_drift(ttl: Optional[int], drift_factor: float) -> int:
    """
    Clock drift compensation untuk TTL.

    drift = round(drift_factor * ttl) + 2ms, atau 0 untuk permanent lock.
    """
    if ttl is None:
        return 0
    return int(round(drift_factor * ttl)) + DRIFT_CONSTANT


def compute_quorum(node_count: int) -> int:
    """Quorum = min(N, N // 2 + 1)"""
    return min(node_count, node_count // 2 + 1)
