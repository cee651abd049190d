"""
Local JSON File Storage Implementation

DESIGN DECISION: The default backend keeps one JSON file per key in a
data directory, the on-disk equivalent of browser local storage:
1. Survives process restarts
2. No server to run
3. Files are readable and easy to back up

Writes go to a temporary file that is atomically renamed into place, so a
crash mid-write leaves the previous value intact. Transient OS errors are
retried with exponential backoff.
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import quote

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


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    File-per-key JSON store.

    Keys are percent-encoded into file names so identities containing
    path separators cannot escape the data directory.
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        write_attempts: int = 3,
    ):
        self._data_dir = Path(data_dir)
        self._write_attempts = write_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """File that holds the value for a key."""
        return self._data_dir / f"{quote(key, safe='')}.json"

    def _read_text(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write_text(self, key: str, text: str) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        target = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, target)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def read(self, key: str) -> Optional[Any]:
        try:
            text = await asyncio.to_thread(self._read_text, key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("storage_read_failed", key=key, error=str(e))
            return None
        return decode_value(key, text)

    async def write(self, key: str, value: Any) -> bool:
        text = encode_value(key, value)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._write_attempts),
                wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    await asyncio.to_thread(self._write_text, key, text)
        except OSError as e:
            raise StorageUnavailableError(
                f"Could not write {key} to {self._data_dir}: {e}", key=key
            ) from e
        return True

    async def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            existed = path.exists()
            if existed:
                await asyncio.to_thread(path.unlink)
        except OSError as e:
            raise StorageUnavailableError(f"Could not delete {key}: {e}", key=key) from e
        return existed
