"""
Abstract Key-Value Storage Interface

DESIGN DECISION: Durable storage is a plain key → JSON value store.
This allows us to:
1. Keep data on local disk (the default), in Redis, or in memory for tests
2. Leave payload shape to callers (no schema versioning here)
3. Keep the scoped cells decoupled from the backend

Failure policy is part of the contract:
- read() never raises. Unavailable backends and corrupt payloads read as
  absent (None) and are logged.
- write() raises StorageUnavailableError. Callers decide how to surface it.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog


logger = structlog.get_logger(__name__)


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for durable key-value storage.

    Any backend (local files, Redis, memory) must implement these methods.
    """

    @abstractmethod
    async def read(self, key: str) -> Optional[Any]:
        """
        Read the JSON value stored at a key.

        Args:
            key: Storage key

        Returns:
            The decoded value, or None if absent, unreadable or corrupt
        """
        pass

    @abstractmethod
    async def write(self, key: str, value: Any) -> bool:
        """
        Write a JSON-serializable value at a key.

        Args:
            key: Storage key
            value: JSON-serializable value

        Returns:
            True if written

        Raises:
            StorageUnavailableError: If the backend could not store the value
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed

        Raises:
            StorageUnavailableError: If the backend could not be reached
        """
        pass


def encode_value(key: str, value: Any) -> str:
    """Serialize a value for storage, failing as a storage error."""
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise StorageUnavailableError(
            f"Value for {key} is not JSON-serializable: {e}", key=key
        ) from e


def decode_value(key: str, text: Optional[str]) -> Optional[Any]:
    """Deserialize stored text; corrupt payloads read as absent."""
    if text is None:
        return None
    try:
        return json.loads(text)
    except ValueError as e:
        logger.warning("storage_corrupt_value", key=key, error=str(e))
        return None


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class StorageUnavailableError(StorageError):
    """The backend could not complete a read or write."""
    pass
