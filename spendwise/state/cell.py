"""
Scoped Reactive Cell

A ScopedCell binds one storage key to one in-memory value and keeps the
two consistent at well-defined points:

BIND:  the key is computed from a prefix and the current identity
       (or the guest scope). If storage holds a valid value, memory adopts
       it; otherwise memory takes a fresh default and storage is
       initialized with it. Whatever memory held before is discarded.
       Binding to the same key again still reconciles, so changes made to
       storage behind the cell's back are picked up.

SET:   memory is updated first, then the value is written through and the
       write is awaited before set() returns. A failed write leaves the
       new value in memory and raises StorageUnavailableError.

There is no locking and no cross-process coordination: one process, one
writer. All mutation must go through set().
"""

import copy
from typing import Callable, Generic, Optional, TypeVar, Union

import structlog
from pydantic import TypeAdapter, ValidationError

from spendwise.services.storage import KeyValueStoreInterface, StorageUnavailableError


logger = structlog.get_logger(__name__)

T = TypeVar("T")

Updater = Callable[[T], T]


def scoped_key(prefix: str, identity: Optional[str], guest_scope: str = "guest") -> str:
    """Storage key for a prefix and identity."""
    return f"{prefix}-{identity or guest_scope}"


class ScopedCell(Generic[T]):
    """
    One value of type T mirrored at one storage key.

    Values are validated and serialized with a pydantic TypeAdapter, so T
    can be any type pydantic understands (lists of models included).
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        prefix: str,
        default_factory: Callable[[], T],
        value_type: type,
        scoped: bool = True,
        guest_scope: str = "guest",
    ):
        self._store = store
        self._prefix = prefix
        self._default_factory = default_factory
        self._adapter: TypeAdapter = TypeAdapter(value_type)
        self._scoped = scoped
        self._guest_scope = guest_scope

        self._key: Optional[str] = None
        self._identity: Optional[str] = None
        self._value: Optional[T] = None

    @property
    def key(self) -> Optional[str]:
        """Key currently bound, None before the first bind."""
        return self._key

    @property
    def identity(self) -> Optional[str]:
        return self._identity

    @property
    def is_bound(self) -> bool:
        return self._key is not None

    @property
    def value(self) -> T:
        if self._key is None:
            raise RuntimeError(f"Cell {self._prefix!r} read before bind()")
        return self._value

    def key_for(self, identity: Optional[str]) -> str:
        if not self._scoped:
            return self._prefix
        return scoped_key(self._prefix, identity, self._guest_scope)

    def _encode(self, value: T):
        return self._adapter.dump_python(value, mode="json", by_alias=True)

    def _fresh_default(self) -> T:
        return copy.deepcopy(self._default_factory())

    async def bind(self, identity: Optional[str]) -> T:
        """
        (Re)bind to the key for `identity` and reconcile with storage.

        Never raises for storage problems: an unreadable or invalid payload
        binds to the default, and a failed initialization write is logged.
        """
        key = self.key_for(identity)
        raw = await self._store.read(key)

        value: Optional[T] = None
        if raw is not None:
            try:
                value = self._adapter.validate_python(raw)
            except ValidationError as e:
                logger.warning(
                    "cell_payload_invalid",
                    key=key,
                    errors=e.error_count(),
                )

        if value is None:
            value = self._fresh_default()
            if raw is None:
                try:
                    await self._store.write(key, self._encode(value))
                except StorageUnavailableError as e:
                    logger.warning("cell_initialize_failed", key=key, error=str(e))

        self._key = key
        self._identity = identity
        self._value = value
        return value

    async def set(self, new_value: Union[T, Updater]) -> T:
        """
        Replace the value (or apply an updater to it) and write through.

        Raises:
            StorageUnavailableError: The write failed. Memory keeps the new
                value anyway.
        """
        if self._key is None:
            raise RuntimeError(f"Cell {self._prefix!r} written before bind()")

        value = new_value(self._value) if callable(new_value) else new_value
        self._value = value
        await self._store.write(self._key, self._encode(value))
        return value
