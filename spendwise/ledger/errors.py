"""
Ledger error taxonomy.

Each kind is a distinct class so callers can show a specific message.
Storage failures on the write path surface as UnsavedChangeError, which is
also a StorageUnavailableError.
"""

from typing import Optional, Union

from spendwise.models.ledger import Budget, Transaction
from spendwise.services.storage import StorageUnavailableError


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class UnauthenticatedError(LedgerError):
    """A mutation was attempted with no current identity."""

    def __init__(self, operation: str):
        super().__init__(f"Sign in required to {operation}")
        self.operation = operation


class OwnershipMismatchError(LedgerError):
    """The record belongs to a different identity."""

    def __init__(self, record_id: str, owner_id: str, identity: str):
        super().__init__(f"Record {record_id} is owned by another user")
        self.record_id = record_id
        self.owner_id = owner_id
        self.identity = identity


class NotFoundError(LedgerError):
    """An update targeted a record that does not exist."""

    def __init__(self, entity_type: str, record_id: str):
        super().__init__(f"{entity_type.capitalize()} {record_id} not found")
        self.entity_type = entity_type
        self.record_id = record_id


class DuplicateBudgetError(LedgerError):
    """A budget for this category and period already exists."""

    def __init__(self, category_id: str, period: str, existing_id: Optional[str] = None):
        super().__init__(
            f"A budget for {category_id} already exists for {period}. "
            "Edit the existing one instead."
        )
        self.category_id = category_id
        self.period = period
        self.existing_id = existing_id


class UnsavedChangeError(LedgerError, StorageUnavailableError):
    """
    The change is applied in memory but could not be written to storage.

    `record` is the transaction or budget that was applied (or removed).
    """

    def __init__(self, record: Union[Transaction, Budget], key: Optional[str], cause: str):
        StorageUnavailableError.__init__(
            self,
            f"Change saved on this device but not written to storage: {cause}",
            key=key,
        )
        self.record = record
