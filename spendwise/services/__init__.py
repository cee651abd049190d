"""Services package."""

from spendwise.services.session import (
    LocalSessionProvider,
    SessionProviderInterface,
)
from spendwise.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    RedisKeyValueStore,
    StorageError,
    StorageUnavailableError,
)

__all__ = [
    # Session
    "LocalSessionProvider",
    "SessionProviderInterface",
    # Storage
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStoreInterface",
    "RedisKeyValueStore",
    "StorageError",
    "StorageUnavailableError",
]
