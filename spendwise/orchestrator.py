"""
Main Orchestrator for SpendWise

This module ties together all the components and defines the
flows that sit above the ledger:
1. Budget goals (set → reject duplicates → edit → remove → progress)
2. Dashboard (totals, spending per category, recent entries)

Transaction entry is driven by the CategorizationWorkflow; this module only
wires it to its collaborators.

DESIGN DECISION: The orchestrator enforces the policies the ledger leaves
to its callers:
- One budget per category and month
- Reads are always scoped to the identity given

This is the "glue" that the app shell calls into.
"""

from decimal import Decimal
from typing import NamedTuple, Optional

from spendwise.agents import GeminiCategorizationAgent, TransactionCategorizer
from spendwise.config import Settings, StorageSettings, get_settings
from spendwise.events import EventLogger
from spendwise.ledger import DuplicateBudgetError, LedgerStore, NotFoundError
from spendwise.models.categories import default_categories
from spendwise.models.ledger import (
    Budget,
    BudgetDraft,
    BudgetProgress,
    CategorySpending,
    CategoryType,
    LedgerTotals,
    Transaction,
)
from spendwise.queries import (
    calculate_budget_progress,
    current_period,
    recent_transactions,
    spending_breakdown,
    summarize_totals,
)
from spendwise.services.session import LocalSessionProvider
from spendwise.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    RedisKeyValueStore,
)
from spendwise.workflow import CategorizationWorkflow


class BudgetGoalFlow:
    """
    Orchestrates monthly budget goals.

    Flow:
    1. Set → reject if the category already has a budget that month
    2. Edit → change the amount of an existing budget
    3. Remove → idempotent
    4. Progress → derived from the ledger, never stored
    """

    def __init__(
        self,
        ledger: LedgerStore,
        event_logger: Optional[EventLogger] = None,
    ):
        self._ledger = ledger
        self._event_logger = event_logger

    async def find_budget(
        self,
        identity: Optional[str],
        category_id: str,
        period: str,
    ) -> Optional[Budget]:
        for budget in await self._ledger.list_budgets(identity):
            if budget.category_id == category_id and budget.period == period:
                return budget
        return None

    async def set_budget(self, identity: Optional[str], draft: BudgetDraft) -> Budget:
        """
        Create a budget goal.

        Raises:
            DuplicateBudgetError: The category already has a budget for the period
            UnauthenticatedError: No identity
        """
        existing = await self.find_budget(identity, draft.category_id, draft.period)
        if existing is not None:
            error = DuplicateBudgetError(draft.category_id, draft.period, existing.id)
            if self._event_logger:
                self._event_logger.log_budget_rejected(
                    identity, draft.category_id, draft.period, str(error),
                )
            raise error

        return await self._ledger.add_budget(identity, draft)

    async def edit_budget(
        self,
        identity: Optional[str],
        budget_id: str,
        amount: Decimal,
    ) -> Budget:
        """Change a budget's amount. Category and period are fixed once set."""
        budgets = await self._ledger.list_budgets(identity)
        current = next((b for b in budgets if b.id == budget_id), None)
        if current is None:
            raise NotFoundError("budget", budget_id)

        updated = Budget.model_validate({**current.model_dump(), "amount": amount})
        return await self._ledger.update_budget(identity, updated)

    async def remove_budget(self, identity: Optional[str], budget_id: str) -> bool:
        return await self._ledger.delete_budget(identity, budget_id)

    async def progress(
        self,
        identity: Optional[str],
        period: Optional[str] = None,
    ) -> list[BudgetProgress]:
        """Progress of every budget in `period` (default: this month)."""
        budgets = await self._ledger.list_budgets(identity)
        transactions = await self._ledger.list_transactions(identity)
        return calculate_budget_progress(
            budgets,
            transactions,
            self._ledger.categories,
            period or current_period(),
        )


class DashboardFlow:
    """Read-only dashboard views over one identity's ledger."""

    def __init__(self, ledger: LedgerStore, recent_limit: int = 10):
        self._ledger = ledger
        self._recent_limit = recent_limit

    async def totals(self, identity: Optional[str]) -> LedgerTotals:
        return summarize_totals(await self._ledger.list_transactions(identity))

    async def breakdown(self, identity: Optional[str]) -> list[CategorySpending]:
        transactions = await self._ledger.list_transactions(identity)
        return spending_breakdown(transactions, self._ledger.categories)

    async def recent(self, identity: Optional[str]) -> list[Transaction]:
        transactions = await self._ledger.list_transactions(identity)
        return recent_transactions(transactions, self._recent_limit)


class AppComponents(NamedTuple):
    store: KeyValueStoreInterface
    session: LocalSessionProvider
    ledger: LedgerStore
    workflow: CategorizationWorkflow
    budgets: BudgetGoalFlow
    dashboard: DashboardFlow
    event_logger: EventLogger


def create_key_value_store(settings: StorageSettings) -> KeyValueStoreInterface:
    """Build the storage backend named in the settings."""
    if settings.backend == "redis":
        return RedisKeyValueStore(settings.redis_url, write_attempts=settings.write_attempts)
    if settings.backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(settings.data_dir, write_attempts=settings.write_attempts)


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStoreInterface] = None,
    categorizer: Optional[TransactionCategorizer] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Defaults to the cached environment settings.
        store: Overrides the configured storage backend.
        categorizer: Overrides the Gemini agent. Pass one when no
                     GEMINI_API_KEY is configured.

    The ledger is attached to the session provider, so signing in or out
    rebinds it. Call `await components.session.restore()` to resume the
    previous session.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    app_settings = settings.app

    store = store or create_key_value_store(storage_settings)
    event_logger = EventLogger()

    session = LocalSessionProvider(
        store=store,
        session_key=f"{storage_settings.namespace}-session",
    )
    ledger = LedgerStore(
        store,
        namespace=storage_settings.namespace,
        guest_scope=app_settings.guest_scope,
        event_logger=event_logger,
    )
    ledger.attach(session)

    if categorizer is None:
        expense_names = [
            c.name for c in default_categories() if c.type is CategoryType.EXPENSE
        ]
        categorizer = GeminiCategorizationAgent(
            settings=settings.gemini,
            category_names=expense_names,
        )

    workflow = CategorizationWorkflow(
        ledger,
        categorizer,
        event_logger=event_logger,
        suggestion_timeout=app_settings.suggestion_timeout_seconds,
    )

    return AppComponents(
        store=store,
        session=session,
        ledger=ledger,
        workflow=workflow,
        budgets=BudgetGoalFlow(ledger, event_logger=event_logger),
        dashboard=DashboardFlow(ledger, recent_limit=app_settings.recent_transactions_limit),
        event_logger=event_logger,
    )
