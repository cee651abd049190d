"""
Redis Storage Implementation

Stores each key as a JSON string in Redis. Useful when several local
processes (for example a CLI and a notebook) should see the same data.

Connection and timeout errors on write are retried; on read they degrade
to "absent" like every other backend.
"""

from typing import Any, Optional

import redis
import redis.asyncio as aioredis
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from spendwise.services.storage.interface import (
    KeyValueStoreInterface,
    StorageUnavailableError,
    decode_value,
    encode_value,
)


logger = structlog.get_logger(__name__)


class RedisKeyValueStore(KeyValueStoreInterface):
    """
    Redis-backed key-value store.

    Pass a ready client to share a connection pool (or to inject a test
    double); otherwise one is created from `redis_url`.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        client: Optional[aioredis.Redis] = None,
        write_attempts: int = 3,
    ):
        self._client = client or aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        self._write_attempts = write_attempts

    async def read(self, key: str) -> Optional[Any]:
        try:
            text = await self._client.get(key)
            if isinstance(text, bytes):
                text = text.decode("utf-8")
        except (redis.RedisError, UnicodeDecodeError) as e:
            logger.warning("storage_read_failed", key=key, error=str(e))
            return None
        return decode_value(key, text)

    async def write(self, key: str, value: Any) -> bool:
        text = encode_value(key, value)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._write_attempts),
                wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                retry=retry_if_exception_type((redis.ConnectionError, redis.TimeoutError)),
                reraise=True,
            ):
                with attempt:
                    await self._client.set(key, text)
        except redis.RedisError as e:
            raise StorageUnavailableError(f"Could not write {key} to Redis: {e}", key=key) from e
        return True

    async def delete(self, key: str) -> bool:
        try:
            removed = await self._client.delete(key)
        except redis.RedisError as e:
            raise StorageUnavailableError(f"Could not delete {key}: {e}", key=key) from e
        return bool(removed)

    async def close(self) -> None:
        await self._client.aclose()
