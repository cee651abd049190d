"""
Core Data Models for SpendWise

These models define the strict schemas for everything the ledger stores
or derives. They are designed to:
1. Enforce the sign/type invariant of transactions at construction
2. Serialize to the camelCase JSON shape kept in durable storage
3. Keep categories as closed reference data (typed icons, validated colors)

DESIGN DECISION: Persisted records are pydantic models with camelCase
aliases. Python code uses snake_case attributes; storage sees
`ownerId`, `categoryId`, `isAiCategorized` and so on.
"""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
COLOR_PATTERN = re.compile(r"^hsl\(\d{1,3}, \d{1,3}%, \d{1,3}%\)$")


def new_record_id() -> str:
    """Generate a fresh record identifier."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class CategoryType(str, Enum):
    """
    Which transactions a category may be used for.

    ALL categories are valid for either direction (used for "Uncategorized").
    """
    INCOME = "income"
    EXPENSE = "expense"
    ALL = "all"

    def accepts(self, transaction_type: TransactionType) -> bool:
        return self is CategoryType.ALL or self.value == transaction_type.value


class CategoryIcon(str, Enum):
    """
    Icon set available to categories.

    DESIGN DECISION: Icons are a closed set. Stored names that are not in
    the set resolve to HELP_CIRCLE instead of failing at render time.
    """
    UTENSILS = "Utensils"
    SHOPPING_CART = "ShoppingCart"
    CAR = "Car"
    HOME = "Home"
    GAMEPAD = "Gamepad2"
    HEART_PULSE = "HeartPulse"
    SHOPPING_BAG = "ShoppingBag"
    SMILE = "Smile"
    BOOK_OPEN = "BookOpen"
    GIFT = "Gift"
    HAND_COINS = "HandCoins"
    BRIEFCASE = "Briefcase"
    TRENDING_UP = "TrendingUp"
    LANDMARK = "Landmark"
    HELP_CIRCLE = "HelpCircle"


class _CamelModel(BaseModel):
    """Base for models persisted as camelCase JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_storage(self) -> dict:
        """Dump to the JSON-compatible shape kept in storage."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# REFERENCE DATA
# =============================================================================

class Category(_CamelModel):
    """
    A spending or income category.

    Categories are immutable reference data. The default set is seeded
    once into storage and never edited by the ledger.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    icon: CategoryIcon = CategoryIcon.HELP_CIRCLE
    color: str = Field(
        default="hsl(0, 0%, 67%)",
        description="HSL color token used by charts"
    )
    type: CategoryType

    @field_validator('icon', mode='before')
    @classmethod
    def fallback_unknown_icon(cls, v):
        """Unknown icon names resolve to the help icon."""
        if isinstance(v, CategoryIcon):
            return v
        try:
            return CategoryIcon(v)
        except ValueError:
            return CategoryIcon.HELP_CIRCLE

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not COLOR_PATTERN.match(v):
            raise ValueError(f"Color must be an hsl(h, s%, l%) token, got {v!r}")
        return v


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(_CamelModel):
    """
    A transaction the user has typed but which is not yet stored.

    The amount is the positive magnitude the user entered; the sign is
    applied from `type` when the draft becomes a Transaction.
    """
    model_config = ConfigDict(frozen=True)

    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    date: datetime = Field(default_factory=datetime.now)
    type: TransactionType = TransactionType.EXPENSE
    category_id: str = Field(..., min_length=1)

    def signed_amount(self) -> Decimal:
        """Amount as stored: negative for expenses, positive for income."""
        if self.type is TransactionType.EXPENSE:
            return -abs(self.amount)
        return abs(self.amount)


class Transaction(_CamelModel):
    """
    A stored ledger entry.

    CRITICAL: The sign of `amount` always matches `type`.
    Expenses are negative, income is positive, zero is rejected.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id, min_length=1)
    owner_id: str = Field(..., min_length=1)
    date: datetime
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., decimal_places=2)
    type: TransactionType
    category_id: str = Field(..., min_length=1)
    is_ai_categorized: bool = False
    needs_review: bool = False

    @model_validator(mode='after')
    def validate_sign(self) -> 'Transaction':
        """Amount sign must agree with the transaction type."""
        if self.amount == 0:
            raise ValueError("Transaction amount cannot be zero")
        if self.type is TransactionType.EXPENSE and self.amount > 0:
            raise ValueError("Expense amounts must be negative")
        if self.type is TransactionType.INCOME and self.amount < 0:
            raise ValueError("Income amounts must be positive")
        return self

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)

    @property
    def period(self) -> str:
        """Calendar year-month this transaction falls in."""
        return self.date.strftime("%Y-%m")


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetDraft(_CamelModel):
    """A budget goal the user wants to set."""
    model_config = ConfigDict(frozen=True)

    category_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    period: str = Field(..., pattern=PERIOD_PATTERN)


class Budget(_CamelModel):
    """
    A stored monthly spending goal for one category.

    At most one budget exists per (owner, category, period); that rule is
    enforced by the budget goal flow, not here.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id, min_length=1)
    owner_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    period: str = Field(
        ...,
        pattern=PERIOD_PATTERN,
        description="Calendar year-month, YYYY-MM"
    )


# =============================================================================
# DERIVED / TRANSIENT MODELS
# =============================================================================

class CategorizationSuggestion(BaseModel):
    """
    A category suggestion from the external categorizer.

    Held only while the user reviews it. Only the category the user
    approves is persisted, on the Transaction.
    """

    suggested_category_label: str = Field(..., min_length=1)
    deviates_from_history: bool = False
    rationale: str = ""


class BudgetProgress(BaseModel):
    """
    Spend-to-date against one budget.

    `progress_ratio` is NOT capped: 1.2 means 120% of the budget is spent.
    Capping for display is up to the consumer.
    """

    budget: Budget
    category_name: str
    spent: Decimal = Field(..., ge=0)
    progress_ratio: Decimal = Field(..., ge=0)
    over_budget: bool


class CategorySpending(BaseModel):
    """Total expense in one category, for charts."""

    category_id: Optional[str] = None
    name: str
    color: str
    amount: Decimal = Field(..., ge=0)


class LedgerTotals(BaseModel):
    """Headline totals shown on the dashboard."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Field(
        default=Decimal("0"),
        description="Sum of expense magnitudes (positive)"
    )
    net_balance: Decimal = Decimal("0")
