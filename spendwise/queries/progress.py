"""
Budget Progress Calculator

Pure derivation over ledger state: never reads storage, never mutates.

For each budget in the requested period:
    spent          = Σ |amount| of expense transactions in that category
                     dated within the period
    progress_ratio = spent / budget amount   (0 if amount <= 0, NOT capped)
    over_budget    = spent > budget amount
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from spendwise.models.categories import UNCATEGORIZED_NAME
from spendwise.models.ledger import (
    Budget,
    BudgetProgress,
    Category,
    Transaction,
    TransactionType,
)


def period_of(moment: Union[date, datetime]) -> str:
    """Calendar year-month ("YYYY-MM") of a date."""
    return moment.strftime("%Y-%m")


def current_period(today: Optional[date] = None) -> str:
    return period_of(today or date.today())


def spent_in_period(
    transactions: Iterable[Transaction],
    category_id: str,
    period: str,
) -> Decimal:
    """Total expense magnitude for one category in one period."""
    return sum(
        (
            abs(txn.amount)
            for txn in transactions
            if txn.type is TransactionType.EXPENSE
            and txn.category_id == category_id
            and txn.period == period
        ),
        Decimal("0"),
    )


def calculate_budget_progress(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    period: Optional[str] = None,
) -> list[BudgetProgress]:
    """
    Progress of every budget in `period` (default: the current month).

    Results are sorted by category name.
    """
    period = period or current_period()
    transactions = list(transactions)
    names = {c.id: c.name for c in categories}

    results = []
    for budget in budgets:
        if budget.period != period:
            continue
        spent = spent_in_period(transactions, budget.category_id, period)
        ratio = spent / budget.amount if budget.amount > 0 else Decimal("0")
        results.append(BudgetProgress(
            budget=budget,
            category_name=names.get(budget.category_id, UNCATEGORIZED_NAME),
            spent=spent,
            progress_ratio=ratio,
            over_budget=spent > budget.amount,
        ))

    results.sort(key=lambda item: item.category_name)
    return results
