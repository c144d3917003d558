"""Nodes package initialization"""

from .base import LockNode
from .memory_node import InMemoryNode
from .redis_node import RedisNode, connect_nodes

__all__ = ['LockNode', 'InMemoryNode', 'RedisNode', 'connect_nodes']
