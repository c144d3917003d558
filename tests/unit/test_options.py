"""
Unit tests untuk options resolver, drift, quorum, dan token generator.
"""

import pytest

from quorumlock.lock.errors import ConfigurationError
from quorumlock.lock.models import AcquireOptions
from quorumlock.lock.options import (
    UNSET,
    compute_drift,
    compute_quorum,
    resolve_options,
    validate_defaults,
)
from quorumlock.lock.tokens import ALPHABET, generate_token


DEFAULTS = AcquireOptions(ttl=5000, retry_delay=100, fail_after=2000)


@pytest.mark.parametrize("nodes,quorum", [(1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (7, 4)])
def test_quorum_arithmetic(nodes, quorum):
    """Quorum = min(N, N // 2 + 1)"""
    assert compute_quorum(nodes) == quorum


def test_drift_for_ttl():
    """drift = round(factor * ttl) + 2"""
    assert compute_drift(1000, 0.01) == 12
    assert compute_drift(30000, 0.01) == 302
    assert compute_drift(50, 0.0) == 2


def test_drift_for_permanent_lock():
    """Permanent lock tidak punya drift"""
    assert compute_drift(None, 0.01) == 0


def test_resolve_uses_defaults_when_unset():
    """Argument yang tidak diberikan pakai default"""
    assert resolve_options(DEFAULTS) == DEFAULTS


def test_resolve_overrides():
    """Per-call values override defaults"""
    resolved = resolve_options(DEFAULTS, ttl=100, retry_delay=5, fail_after=50)
    assert resolved == AcquireOptions(ttl=100, retry_delay=5, fail_after=50)


def test_resolve_explicit_none():
    """None eksplisit berarti permanent lock / tanpa deadline"""
    resolved = resolve_options(DEFAULTS, ttl=None, fail_after=None)
    assert resolved.ttl is None
    assert resolved.fail_after is None
    assert resolved.retry_delay == 100


def test_resolve_does_not_mutate_defaults():
    """Defaults tetap sama setelah resolve"""
    resolve_options(DEFAULTS, ttl=1)
    assert DEFAULTS.ttl == 5000


@pytest.mark.parametrize("kwargs", [
    {'ttl': 0},
    {'ttl': -10},
    {'ttl': 1.5},
    {'retry_delay': -1},
    {'fail_after': -1},
    {'ttl': True},
    {'retry_delay': True},
    {'fail_after': False},
])
def test_resolve_rejects_invalid_values(kwargs):
    """Per-call values yang invalid raise ValueError"""
    with pytest.raises(ValueError):
        resolve_options(DEFAULTS, **kwargs)


def test_validate_defaults():
    """Defaults invalid raise ConfigurationError"""
    validate_defaults(DEFAULTS, 0.01)

    with pytest.raises(ConfigurationError):
        validate_defaults(DEFAULTS, 1.5)
    with pytest.raises(ConfigurationError):
        validate_defaults(AcquireOptions(ttl=-1, retry_delay=100, fail_after=None), 0.01)


def test_unset_is_falsy():
    assert not UNSET
    assert repr(UNSET) == "UNSET"


def test_generate_token():
    """Token 20 karakter dari alphabet alfanumerik, tidak collide"""
    tokens = {generate_token() for _ in range(1000)}

    assert len(tokens) == 1000
    for token in tokens:
        assert len(token) == 20
        assert set(token) <= set(ALPHABET)

    assert len(generate_token(32)) == 32


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
