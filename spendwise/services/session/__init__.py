"""Identity / session provider package."""

from spendwise.services.session.provider import (
    IdentityListener,
    LocalSessionProvider,
    SessionProviderInterface,
)

__all__ = [
    "IdentityListener",
    "LocalSessionProvider",
    "SessionProviderInterface",
]
