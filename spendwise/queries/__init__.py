"""Read-only derivations over ledger state."""

from spendwise.queries.progress import (
    calculate_budget_progress,
    current_period,
    period_of,
    spent_in_period,
)
from spendwise.queries.reports import (
    recent_transactions,
    spending_breakdown,
    summarize_totals,
)

__all__ = [
    "calculate_budget_progress",
    "current_period",
    "period_of",
    "recent_transactions",
    "spending_breakdown",
    "spent_in_period",
    "summarize_totals",
]
