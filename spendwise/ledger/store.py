"""
Ledger Store

Owns the transaction and budget collections of the current identity,
each held in a ScopedCell, plus the global category reference set.

DESIGN DECISION: Every operation takes the identity explicitly.
The store's only coupling to "who is signed in" is the key each cell is
bound to. If an operation arrives for an identity other than the bound
one, the cells are rebound first; identity-change events from a session
provider trigger the same rebind.

POLICIES:
- add_*: requires an identity (UnauthenticatedError otherwise)
- update_*: requires record.owner_id == identity (OwnershipMismatchError)
  and an existing id (NotFoundError), for transactions and budgets alike
- delete_*: idempotent; a missing id (including another identity's record,
  which lives in another partition) is not an error. A foreign-owned record
  found in this identity's collection raises OwnershipMismatchError
- A write that fails after the change is applied in memory raises
  UnsavedChangeError carrying the applied record
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Callable, Optional, TypeVar, Union

from spendwise.events import EventLogger
from spendwise.ledger.errors import (
    NotFoundError,
    OwnershipMismatchError,
    UnauthenticatedError,
    UnsavedChangeError,
)
from spendwise.models.categories import UNCATEGORIZED_NAME, default_categories
from spendwise.models.events import LedgerEventType
from spendwise.models.ledger import (
    Budget,
    BudgetDraft,
    Category,
    CategoryType,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from spendwise.services.session import SessionProviderInterface
from spendwise.services.storage import KeyValueStoreInterface, StorageUnavailableError
from spendwise.state import ScopedCell


UNAUTHENTICATED_SUMMARY = "User not authenticated."
NO_DATA_SUMMARY = "No historical spending data available."

R = TypeVar("R", Transaction, Budget)


def render_spending_summary(spending: dict[str, Decimal]) -> str:
    """Render category totals as the text handed to the categorizer."""
    pairs = ", ".join(f"{name}: ${amount:.2f}" for name, amount in spending.items())
    return f"Historical spending: {pairs}."


class LedgerStore:
    """
    Identity-scoped transactions and budgets with write-through storage.

    Keys:
        <namespace>-transactions-<identity|guest>
        <namespace>-budgets-<identity|guest>
        <namespace>-categories
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        namespace: str = "spendwise",
        guest_scope: str = "guest",
        event_logger: Optional[EventLogger] = None,
    ):
        self._event_logger = event_logger
        self._transactions: ScopedCell[list[Transaction]] = ScopedCell(
            store,
            prefix=f"{namespace}-transactions",
            default_factory=list,
            value_type=list[Transaction],
            guest_scope=guest_scope,
        )
        self._budgets: ScopedCell[list[Budget]] = ScopedCell(
            store,
            prefix=f"{namespace}-budgets",
            default_factory=list,
            value_type=list[Budget],
            guest_scope=guest_scope,
        )
        self._categories: ScopedCell[list[Category]] = ScopedCell(
            store,
            prefix=f"{namespace}-categories",
            default_factory=default_categories,
            value_type=list[Category],
            scoped=False,
        )
        self._unsubscribe: Optional[Callable[[], None]] = None

    # -------------------------------------------------------------------------
    # Binding
    # -------------------------------------------------------------------------

    @property
    def bound_identity(self) -> Optional[str]:
        return self._transactions.identity

    @property
    def is_bound(self) -> bool:
        return self._transactions.is_bound

    async def bind(self, identity: Optional[str]) -> None:
        """Rebind every cell to `identity` and reconcile with storage."""
        await self._transactions.bind(identity)
        await self._budgets.bind(identity)
        await self._categories.bind(identity)
        if self._event_logger:
            self._event_logger.log_cells_rebound(
                identity,
                [self._transactions.key, self._budgets.key, self._categories.key],
            )

    async def on_identity_changed(self, identity: Optional[str]) -> None:
        """Session provider listener."""
        previous = self.bound_identity
        if self._event_logger:
            self._event_logger.log_identity_changed(previous, identity)
        await self.bind(identity)

    def attach(self, provider: SessionProviderInterface) -> None:
        """Follow a session provider's identity changes."""
        self.detach()
        self._unsubscribe = provider.subscribe(self.on_identity_changed)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _ensure_bound(self, identity: Optional[str]) -> None:
        if not self.is_bound or self.bound_identity != identity:
            await self.bind(identity)

    @staticmethod
    def _require_identity(identity: Optional[str], operation: str) -> str:
        if not identity:
            raise UnauthenticatedError(operation)
        return identity

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_transactions(self, identity: Optional[str]) -> list[Transaction]:
        await self._ensure_bound(identity)
        return list(self._transactions.value)

    async def list_budgets(self, identity: Optional[str]) -> list[Budget]:
        await self._ensure_bound(identity)
        return list(self._budgets.value)

    @property
    def categories(self) -> list[Category]:
        """Category reference set. Requires a prior bind."""
        return list(self._categories.value)

    async def load_categories(self) -> list[Category]:
        """Categories, binding the reference cell if nothing is bound yet."""
        if not self._categories.is_bound:
            await self._categories.bind(None)
        return self.categories

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self._categories.value:
            if category.id == category_id:
                return category
        return None

    def categories_for(self, transaction_type: TransactionType) -> list[Category]:
        """Categories usable for a direction, including 'all' categories."""
        return [c for c in self._categories.value if c.type.accepts(transaction_type)]

    def expense_categories(self, include_all: bool = False) -> list[Category]:
        allowed = {CategoryType.EXPENSE, CategoryType.ALL} if include_all else {CategoryType.EXPENSE}
        return [c for c in self._categories.value if c.type in allowed]

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        identity: Optional[str],
        draft: TransactionDraft,
        *,
        is_ai_categorized: bool = False,
        needs_review: bool = False,
    ) -> Transaction:
        owner = self._require_identity(identity, "add a transaction")
        await self._ensure_bound(owner)

        transaction = Transaction(
            owner_id=owner,
            date=draft.date,
            description=draft.description,
            amount=draft.signed_amount(),
            type=draft.type,
            category_id=draft.category_id,
            is_ai_categorized=is_ai_categorized,
            needs_review=needs_review,
        )
        await self._write(self._transactions, lambda items: [*items, transaction], transaction)

        if self._event_logger:
            self._event_logger.log_transaction_added(
                transaction_id=transaction.id,
                identity=owner,
                amount=str(transaction.amount),
                category_id=transaction.category_id,
                is_ai_categorized=is_ai_categorized,
            )
        return transaction

    async def update_transaction(
        self,
        identity: Optional[str],
        record: Transaction,
    ) -> Transaction:
        owner = self._require_identity(identity, "update a transaction")
        self._check_owner(record, owner)
        await self._ensure_bound(owner)

        await self._replace(self._transactions, record, "transaction")
        if self._event_logger:
            self._event_logger.log_transaction_updated(record.id, owner)
        return record

    async def delete_transaction(self, identity: Optional[str], transaction_id: str) -> bool:
        """
        Remove a transaction. Returns False if the id is not present.

        Records are partitioned by owner, so another identity's record id
        is simply absent from this identity's collection and deletes
        nothing. OwnershipMismatchError is raised only for a foreign-owned
        record found inside this identity's own collection.
        """
        owner = self._require_identity(identity, "delete a transaction")
        await self._ensure_bound(owner)

        removed = await self._remove(self._transactions, transaction_id, owner)
        if removed is not None and self._event_logger:
            self._event_logger.log_transaction_deleted(transaction_id, owner)
        return removed is not None

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def add_budget(self, identity: Optional[str], draft: BudgetDraft) -> Budget:
        """
        Store a new budget.

        Does NOT check for an existing budget with the same category and
        period; that policy belongs to the caller (see BudgetGoalFlow).
        """
        owner = self._require_identity(identity, "add a budget")
        await self._ensure_bound(owner)

        budget = Budget(
            owner_id=owner,
            category_id=draft.category_id,
            amount=draft.amount,
            period=draft.period,
        )
        await self._write(self._budgets, lambda items: [*items, budget], budget)

        if self._event_logger:
            self._event_logger.log_budget_changed(
                LedgerEventType.BUDGET_ADDED, budget.id, owner, budget.category_id, budget.period,
            )
        return budget

    async def update_budget(self, identity: Optional[str], record: Budget) -> Budget:
        owner = self._require_identity(identity, "update a budget")
        self._check_owner(record, owner)
        await self._ensure_bound(owner)

        await self._replace(self._budgets, record, "budget")
        if self._event_logger:
            self._event_logger.log_budget_changed(
                LedgerEventType.BUDGET_UPDATED, record.id, owner, record.category_id, record.period,
            )
        return record

    async def delete_budget(self, identity: Optional[str], budget_id: str) -> bool:
        """Remove a budget. Same partitioning rules as delete_transaction."""
        owner = self._require_identity(identity, "delete a budget")
        await self._ensure_bound(owner)

        removed = await self._remove(self._budgets, budget_id, owner)
        if removed is not None and self._event_logger:
            self._event_logger.log_budget_changed(
                LedgerEventType.BUDGET_DELETED, budget_id, owner, removed.category_id, removed.period,
            )
        return removed is not None

    # -------------------------------------------------------------------------
    # Spending summary
    # -------------------------------------------------------------------------

    async def spending_summary(self, identity: Optional[str]) -> dict[str, Decimal]:
        """
        Cumulative expense per category name.

        Amounts are summed as absolute values; expenses are stored negative.
        Transactions whose category is unknown count as "Uncategorized".
        """
        if not identity:
            return {}
        await self._ensure_bound(identity)

        names = {c.id: c.name for c in self._categories.value}
        spending: dict[str, Decimal] = {}
        for txn in self._transactions.value:
            if txn.owner_id != identity or txn.type is not TransactionType.EXPENSE:
                continue
            name = names.get(txn.category_id, UNCATEGORIZED_NAME)
            spending[name] = spending.get(name, Decimal("0")) + abs(txn.amount)
        return spending

    async def get_historical_spending_patterns(self, identity: Optional[str]) -> str:
        """Spending summary as text, or a sentinel when there is none."""
        if not identity:
            return UNAUTHENTICATED_SUMMARY
        spending = await self.spending_summary(identity)
        if not spending:
            return NO_DATA_SUMMARY
        return render_spending_summary(spending)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_owner(record: Union[Transaction, Budget], identity: str) -> None:
        if record.owner_id != identity:
            raise OwnershipMismatchError(record.id, record.owner_id, identity)

    async def _write(
        self,
        cell: ScopedCell,
        updater: Callable[[list], list],
        record: Union[Transaction, Budget],
    ) -> None:
        try:
            await cell.set(updater)
        except StorageUnavailableError as e:
            if self._event_logger:
                self._event_logger.log_storage_write_failed(cell.key, str(e))
            raise UnsavedChangeError(record, cell.key, str(e)) from e

    async def _replace(self, cell: ScopedCell, record: R, entity_type: str) -> None:
        items: Sequence[R] = cell.value
        if not any(item.id == record.id for item in items):
            raise NotFoundError(entity_type, record.id)
        existing = next(item for item in items if item.id == record.id)
        self._check_owner(existing, record.owner_id)
        await self._write(
            cell,
            lambda current: [record if item.id == record.id else item for item in current],
            record,
        )

    async def _remove(self, cell: ScopedCell, record_id: str, identity: str) -> Optional[R]:
        existing = next((item for item in cell.value if item.id == record_id), None)
        if existing is None:
            return None
        self._check_owner(existing, identity)
        await self._write(
            cell,
            lambda current: [item for item in current if item.id != record_id],
            existing,
        )
        return existing
