"""
Identity / Session Provider

The ledger only needs three things from an identity system:
1. Who is signed in right now (an opaque string, or None)
2. A notification when that changes
3. A way to start a guest session and to sign out

SessionProviderInterface captures that. LocalSessionProvider is an
in-process implementation that issues anonymous identities itself and can
remember the last one in the key-value store so a restart resumes it.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional
from uuid import uuid4

import structlog

from spendwise.services.storage import KeyValueStoreInterface, StorageUnavailableError


logger = structlog.get_logger(__name__)

IdentityListener = Callable[[Optional[str]], Awaitable[None]]


class SessionProviderInterface(ABC):
    """Abstract source of the current identity."""

    @property
    @abstractmethod
    def current_identity(self) -> Optional[str]:
        pass

    @property
    def is_authenticated(self) -> bool:
        return self.current_identity is not None

    @abstractmethod
    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """
        Register a coroutine called with the new identity on every change.

        Returns:
            A function that removes the listener
        """
        pass

    @abstractmethod
    async def sign_in_anonymously(self) -> str:
        """Start a guest session and return its identity."""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass


class LocalSessionProvider(SessionProviderInterface):
    """
    In-process session provider.

    Listeners are awaited in registration order. Signing in to the
    identity that is already current does not notify anyone.
    """

    def __init__(
        self,
        store: Optional[KeyValueStoreInterface] = None,
        session_key: str = "spendwise-session",
    ):
        self._store = store
        self._session_key = session_key
        self._identity: Optional[str] = None
        self._listeners: list[IdentityListener] = []

    @property
    def current_identity(self) -> Optional[str]:
        return self._identity

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def restore(self) -> Optional[str]:
        """Resume the identity saved by a previous process, if any."""
        if self._store is None:
            return self._identity
        saved = await self._store.read(self._session_key)
        identity = saved.get("identity") if isinstance(saved, dict) else None
        await self._change(identity if isinstance(identity, str) and identity else None)
        return self._identity

    async def sign_in(self, identity: str) -> str:
        """Make an externally issued identity current."""
        if not identity:
            raise ValueError("Identity must be a non-empty string")
        await self._change(identity)
        return identity

    async def sign_in_anonymously(self) -> str:
        return await self.sign_in(f"anon-{uuid4().hex}")

    async def sign_out(self) -> None:
        await self._change(None)

    async def _change(self, identity: Optional[str]) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        if self._store is not None:
            # Session persistence is best-effort; losing it only means a
            # fresh guest session on the next start.
            try:
                await self._store.write(self._session_key, {"identity": identity})
            except StorageUnavailableError as e:
                logger.warning("session_persist_failed", error=str(e))
        for listener in list(self._listeners):
            await listener(identity)
