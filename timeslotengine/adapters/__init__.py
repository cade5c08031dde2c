"""
Adapters layer - Store and cache implementations.
"""

from .memory_cache import InMemoryProfileCache
from .memory_store import SAMPLE_DATA_FILE, InMemoryStore
from .redis_cache import RedisProfileCache

__all__ = ["InMemoryProfileCache", "InMemoryStore", "RedisProfileCache", "SAMPLE_DATA_FILE"]
