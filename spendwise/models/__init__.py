"""
Data Models Package

This package contains all Pydantic models used in SpendWise.
All data flowing through the ledger must conform to these schemas.
"""

from spendwise.models.ledger import (
    Budget,
    BudgetDraft,
    BudgetProgress,
    CategorizationSuggestion,
    Category,
    CategoryIcon,
    CategorySpending,
    CategoryType,
    LedgerTotals,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from spendwise.models.categories import (
    DEFAULT_CATEGORIES,
    UNCATEGORIZED_ID,
    UNCATEGORIZED_NAME,
    default_categories,
)
from spendwise.models.events import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "Budget",
    "BudgetDraft",
    "BudgetProgress",
    "CategorizationSuggestion",
    "Category",
    "CategoryIcon",
    "CategorySpending",
    "CategoryType",
    "LedgerTotals",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    # Reference data
    "DEFAULT_CATEGORIES",
    "UNCATEGORIZED_ID",
    "UNCATEGORIZED_NAME",
    "default_categories",
    # Event models
    "EventSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
