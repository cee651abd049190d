"""
Default category set.

Seeded into storage under the global categories key the first time a
ledger binds. Names are unique per category type.
"""

from spendwise.models.ledger import Category, CategoryIcon, CategoryType


UNCATEGORIZED_ID = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    # Expenses
    Category(id="food", name="Food & Dining", icon=CategoryIcon.UTENSILS,
             color="hsl(16, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="groceries", name="Groceries", icon=CategoryIcon.SHOPPING_CART,
             color="hsl(30, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="transport", name="Transportation", icon=CategoryIcon.CAR,
             color="hsl(200, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="housing", name="Housing & Utilities", icon=CategoryIcon.HOME,
             color="hsl(240, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="entertainment", name="Entertainment", icon=CategoryIcon.GAMEPAD,
             color="hsl(45, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="health", name="Healthcare", icon=CategoryIcon.HEART_PULSE,
             color="hsl(0, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="shopping", name="Shopping", icon=CategoryIcon.SHOPPING_BAG,
             color="hsl(270, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="personal_care", name="Personal Care", icon=CategoryIcon.SMILE,
             color="hsl(300, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="education", name="Education", icon=CategoryIcon.BOOK_OPEN,
             color="hsl(220, 87%, 67%)", type=CategoryType.EXPENSE),
    Category(id="gifts", name="Gifts & Donations", icon=CategoryIcon.GIFT,
             color="hsl(330, 87%, 67%)", type=CategoryType.EXPENSE),
    # Income
    Category(id="salary", name="Salary", icon=CategoryIcon.HAND_COINS,
             color="hsl(120, 60%, 50%)", type=CategoryType.INCOME),
    Category(id="freelance", name="Freelance/Side Hustle", icon=CategoryIcon.BRIEFCASE,
             color="hsl(140, 60%, 50%)", type=CategoryType.INCOME),
    Category(id="investments", name="Investments", icon=CategoryIcon.TRENDING_UP,
             color="hsl(100, 60%, 50%)", type=CategoryType.INCOME),
    Category(id="other_income", name="Other Income", icon=CategoryIcon.LANDMARK,
             color="hsl(160, 60%, 50%)", type=CategoryType.INCOME),
    # Either direction
    Category(id=UNCATEGORIZED_ID, name=UNCATEGORIZED_NAME, icon=CategoryIcon.HELP_CIRCLE,
             color="hsl(0, 0%, 67%)", type=CategoryType.ALL),
)


def default_categories() -> list[Category]:
    """Fresh list of the default categories."""
    return list(DEFAULT_CATEGORIES)
