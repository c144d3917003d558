"""
Configuration manager untuk lock coordinator.
File ini membaca environment variables dan menyediakan
konfigurasi default untuk coordinator, Redis nodes, dan gateway.
"""

import os
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv

from ..lock.errors import ConfigurationError

# Load environment variables dari .env file
load_dotenv()


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    """Parse integer env var; string kosong berarti None"""
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw or raw.lower() == 'none':
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, '').strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, '').strip().lower()
    if not raw:
        return default
    return raw in ('1', 'true', 'yes', 'on')


def parse_node(entry: str, password: str = '') -> str:
    """
    Convert satu node entry ke Redis URL.
    Format: "redis://..." (dipakai apa adanya) atau "host:port[/db]"
    """
    entry = entry.strip()
    if '://' in entry:
        return entry

    address, _, db = entry.partition('/')
    host, _, port = address.partition(':')
    if not host:
        raise ConfigurationError(f"Invalid Redis node entry: {entry!r}")
    if port and not port.isdigit():
        raise ConfigurationError(f"Invalid Redis port in node entry: {entry!r}")

    auth = f":{password}@" if password else ''
    return f"redis://{auth}{host}:{port or 6379}/{db or 0}"


class Config:
    """Class untuk manage semua konfigurasi sistem"""

    # Redis Nodes Configuration
    @staticmethod
    def get_nodes() -> List[str]:
        """
        Parse Redis nodes dari environment variable.
        Format: "host1:port1,host2:port2/1,redis://host3:6379/0"
        Returns: List of Redis URLs
        """
        nodes_str = os.getenv('REDIS_NODES', 'localhost:6379')
        password = os.getenv('REDIS_PASSWORD', '')
        return [parse_node(node, password) for node in nodes_str.split(',') if node.strip()]

    REDIS_SOCKET_TIMEOUT: float = _env_float('REDIS_SOCKET_TIMEOUT', 0.5)

    # Lock Configuration (dalam milliseconds)
    LOCK_PREFIX: str = os.getenv('LOCK_PREFIX', 'lock:')
    LOCK_TTL: Optional[int] = _env_int('LOCK_TTL', None)
    LOCK_RETRY_DELAY: int = _env_int('LOCK_RETRY_DELAY', 100)
    LOCK_FAIL_AFTER: Optional[int] = _env_int('LOCK_FAIL_AFTER', None)
    LOCK_DRIFT_FACTOR: float = _env_float('LOCK_DRIFT_FACTOR', 0.01)

    # Hanya untuk testing, jangan aktifkan di production
    LOCK_CLEAR_ON_STARTUP: bool = _env_bool('LOCK_CLEAR_ON_STARTUP')
    LOCK_CLEAR_ON_SHUTDOWN: bool = _env_bool('LOCK_CLEAR_ON_SHUTDOWN')

    # HTTP Gateway Configuration
    GATEWAY_HOST: str = os.getenv('GATEWAY_HOST', 'localhost')
    GATEWAY_PORT: int = _env_int('GATEWAY_PORT', 8080)

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE: str = os.getenv('LOG_FILE', '')

    @classmethod
    def coordinator_options(cls) -> Dict[str, Any]:
        """Keyword defaults untuk LockCoordinator"""
        return {
            'prefix': cls.LOCK_PREFIX,
            'ttl': cls.LOCK_TTL,
            'retry_delay': cls.LOCK_RETRY_DELAY if cls.LOCK_RETRY_DELAY is not None else 100,
            'fail_after': cls.LOCK_FAIL_AFTER,
            'drift_factor': cls.LOCK_DRIFT_FACTOR,
        }

    @classmethod
    def display(cls):
        """Print semua konfigurasi untuk debugging"""
        print("=== Configuration ===")
        print(f"Redis nodes: {os.getenv('REDIS_NODES', 'localhost:6379')}")
        print(f"Lock prefix: {cls.LOCK_PREFIX}")
        print(f"TTL: {cls.LOCK_TTL}ms, retry delay: {cls.LOCK_RETRY_DELAY}ms, "
              f"fail after: {cls.LOCK_FAIL_AFTER}ms, drift factor: {cls.LOCK_DRIFT_FACTOR}")
        print(f"Gateway: {cls.GATEWAY_HOST}:{cls.GATEWAY_PORT}")
        print("=" * 30)


# Test configuration saat file dijalankan langsung
if __name__ == "__main__":
    Config.display()
