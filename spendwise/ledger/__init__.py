"""Ledger package: identity-scoped transactions and budgets."""

from spendwise.ledger.errors import (
    DuplicateBudgetError,
    LedgerError,
    NotFoundError,
    OwnershipMismatchError,
    UnauthenticatedError,
    UnsavedChangeError,
)
from spendwise.ledger.store import (
    NO_DATA_SUMMARY,
    UNAUTHENTICATED_SUMMARY,
    LedgerStore,
    render_spending_summary,
)

__all__ = [
    "DuplicateBudgetError",
    "LedgerError",
    "LedgerStore",
    "NO_DATA_SUMMARY",
    "NotFoundError",
    "OwnershipMismatchError",
    "UNAUTHENTICATED_SUMMARY",
    "UnauthenticatedError",
    "UnsavedChangeError",
    "render_spending_summary",
]
