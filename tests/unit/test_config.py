"""
Unit tests untuk configuration manager.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

from quorumlock.lock.errors import ConfigurationError
from quorumlock.utils.config import Config, _env_bool, _env_int, parse_node


def test_parse_node_host_port():
    assert parse_node("localhost:6379") == "redis://localhost:6379/0"
    assert parse_node("redis-b:6380/2") == "redis://redis-b:6380/2"
    assert parse_node("redis-c") == "redis://redis-c:6379/0"


def test_parse_node_url_passthrough():
    assert parse_node(" redis://:secret@redis-a:6379/1 ") == "redis://:secret@redis-a:6379/1"


def test_parse_node_with_password():
    assert parse_node("redis-a:6379", password="secret") == "redis://:secret@redis-a:6379/0"


def test_parse_node_invalid():
    with pytest.raises(ConfigurationError):
        parse_node(":6379")
    with pytest.raises(ConfigurationError):
        parse_node("redis-a:port")


def test_get_nodes(monkeypatch):
    """REDIS_NODES dipisah koma"""
    monkeypatch.setenv('REDIS_NODES', 'redis-a:6379, redis-b:6379/1,,redis-c:6379')
    monkeypatch.delenv('REDIS_PASSWORD', raising=False)

    assert Config.get_nodes() == [
        "redis://redis-a:6379/0",
        "redis://redis-b:6379/1",
        "redis://redis-c:6379/0",
    ]


def test_env_int(monkeypatch):
    monkeypatch.setenv('TEST_LOCK_TTL', '5000')
    assert _env_int('TEST_LOCK_TTL', None) == 5000

    monkeypatch.setenv('TEST_LOCK_TTL', '')
    assert _env_int('TEST_LOCK_TTL', 100) is None

    monkeypatch.delenv('TEST_LOCK_TTL')
    assert _env_int('TEST_LOCK_TTL', 100) == 100

    monkeypatch.setenv('TEST_LOCK_TTL', 'soon')
    with pytest.raises(ConfigurationError):
        _env_int('TEST_LOCK_TTL', None)


def test_env_bool(monkeypatch):
    monkeypatch.setenv('TEST_FLAG', 'true')
    assert _env_bool('TEST_FLAG') is True

    monkeypatch.setenv('TEST_FLAG', '0')
    assert _env_bool('TEST_FLAG') is False


def test_coordinator_options():
    options = Config.coordinator_options()

    assert set(options) == {'prefix', 'ttl', 'retry_delay', 'fail_after', 'drift_factor'}
    assert options['retry_delay'] is not None


def test_package_import_ignores_invalid_env(tmp_path):
    """Env invalid hanya gagal saat Config dipakai, bukan saat import package"""
    root = Path(__file__).resolve().parents[2]
    env = {**os.environ, 'LOCK_TTL': 'soon'}
    env['PYTHONPATH'] = os.pathsep.join(filter(None, [str(root), env.get('PYTHONPATH')]))

    code = (
        "import sys\n"
        "from quorumlock import LockCoordinator, InMemoryNode\n"
        "assert 'quorumlock.utils.config' not in sys.modules\n"
    )
    result = subprocess.run([sys.executable, '-c', code], cwd=tmp_path, env=env,
                            capture_output=True, text=True)
    assert result.returncode == 0, result.stderr

    result = subprocess.run([sys.executable, '-c', 'import quorumlock.utils.config'], cwd=tmp_path,
                            env=env, capture_output=True, text=True)
    assert result.returncode != 0
    assert 'LOCK_TTL' in result.stderr


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
