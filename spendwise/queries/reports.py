"""
Dashboard Reports

Deterministic summaries of a user's transactions for the dashboard:
headline totals, spending per category for charts, and the most recent
entries. Like the progress calculator these are pure functions.
"""

from decimal import Decimal
from typing import Iterable

from spendwise.models.categories import UNCATEGORIZED_NAME
from spendwise.models.ledger import (
    Category,
    CategorySpending,
    LedgerTotals,
    Transaction,
    TransactionType,
)


UNCATEGORIZED_COLOR = "hsl(0, 0%, 67%)"


def summarize_totals(transactions: Iterable[Transaction]) -> LedgerTotals:
    """
    Total income, total expenses and net balance.

    Expenses are reported as a positive magnitude; net is income minus
    that magnitude.
    """
    income = Decimal("0")
    expenses = Decimal("0")
    for txn in transactions:
        if txn.type is TransactionType.INCOME:
            income += abs(txn.amount)
        else:
            expenses += abs(txn.amount)
    return LedgerTotals(
        total_income=income,
        total_expenses=expenses,
        net_balance=income - expenses,
    )


def spending_breakdown(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> list[CategorySpending]:
    """Expense total per category, largest first."""
    by_id = {c.id: c for c in categories}
    totals: dict[str, CategorySpending] = {}

    for txn in transactions:
        if txn.type is not TransactionType.EXPENSE:
            continue
        category = by_id.get(txn.category_id)
        name = category.name if category else UNCATEGORIZED_NAME
        entry = totals.get(name)
        if entry is None:
            entry = CategorySpending(
                category_id=category.id if category else None,
                name=name,
                color=category.color if category else UNCATEGORIZED_COLOR,
                amount=Decimal("0"),
            )
        totals[name] = entry.model_copy(update={"amount": entry.amount + abs(txn.amount)})

    return sorted(totals.values(), key=lambda item: item.amount, reverse=True)


def recent_transactions(
    transactions: Iterable[Transaction],
    limit: int = 10,
) -> list[Transaction]:
    """Newest transactions first."""
    return sorted(transactions, key=lambda txn: txn.date, reverse=True)[:limit]
