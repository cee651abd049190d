"""
Storage Services Package

Provides the abstract key-value interface and concrete backends.
Local JSON files are the default; Redis and in-memory are swappable.
"""

from spendwise.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
    StorageUnavailableError,
)
from spendwise.services.storage.file_store import JsonFileKeyValueStore
from spendwise.services.storage.memory_store import InMemoryKeyValueStore
from spendwise.services.storage.redis_store import RedisKeyValueStore

__all__ = [
    # Interface
    "KeyValueStoreInterface",
    # Exceptions
    "StorageError",
    "StorageUnavailableError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "RedisKeyValueStore",
]
