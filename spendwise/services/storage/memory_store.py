"""
In-Memory Storage Implementation

Keeps JSON text in a dict. Values are encoded on write and decoded on
read exactly like the durable backends, so callers never share mutable
objects with the store. Used by tests and for throwaway sessions.
"""

from typing import Any, Optional

from spendwise.services.storage.interface import (
    KeyValueStoreInterface,
    decode_value,
    encode_value,
)


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Process-local key-value store."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def keys(self) -> list[str]:
        return sorted(self._data)

    def raw(self, key: str) -> Optional[str]:
        """Stored text for a key, undecoded."""
        return self._data.get(key)

    async def read(self, key: str) -> Optional[Any]:
        return decode_value(key, self._data.get(key))

    async def write(self, key: str, value: Any) -> bool:
        self._data[key] = encode_value(key, value)
        return True

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None
