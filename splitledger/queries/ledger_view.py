"""
Ledger Views

Deterministic helpers that shape the loaded expense list for display:
ordering, category filters, month grouping and new-expense drafts.

Nothing here touches storage; every function takes the data it needs
and returns new lists.
"""

from datetime import date
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from splitledger.models.ledger import Category, Expense, ExpenseCreate, SplitType


ALL_CATEGORIES = "all"


class MonthGroup(BaseModel):
    """Expenses incurred in one calendar month."""

    label: str = Field(
        ...,
        description="Month and year, e.g. 'March 2025'"
    )
    year: int
    month: int
    expenses: list[Expense] = Field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(float(e.amount) for e in self.expenses)


class ExpensePreset(str, Enum):
    """Quick-add buttons for the usual shops."""
    GROCERIES = "groceries"
    PHARMACY = "pharmacy"
    DRUGSTORE = "drugstore"


# preset -> (description, category name to look for)
PRESET_DEFAULTS: dict[ExpensePreset, tuple[str, str]] = {
    ExpensePreset.GROCERIES: ("Hofer/Spar", "groceries"),
    ExpensePreset.PHARMACY: ("Apotheke", "health"),
    ExpensePreset.DRUGSTORE: ("Bipa/Dm", "health"),
}


def sort_newest_first(expenses: list[Expense]) -> list[Expense]:
    """Order by when the expense was recorded, newest first."""
    return sorted(expenses, key=lambda e: e.recorded_at, reverse=True)


def filter_by_category(
    expenses: list[Expense],
    category: Union[int, str, None] = ALL_CATEGORIES,
) -> list[Expense]:
    """
    Keep expenses in one category.

    `category` is a category id (int or numeric string). None or
    "all" keeps everything.
    """
    if category is None or category == ALL_CATEGORIES:
        return list(expenses)
    category_id = int(category)
    return [e for e in expenses if e.category_id == category_id]


def filter_by_category_name(
    expenses: list[Expense],
    name: Optional[str],
) -> list[Expense]:
    """Keep expenses whose embedded category has this name (case-insensitive)."""
    if name is None or name == ALL_CATEGORIES:
        return list(expenses)
    wanted = name.strip().lower()
    return [
        e for e in expenses
        if e.category_name is not None and e.category_name.lower() == wanted
    ]


def group_by_month(expenses: list[Expense]) -> list[MonthGroup]:
    """
    Group by the month the expense was incurred.

    Months are newest first, and so are the expenses inside each month.
    """
    groups: dict[tuple[int, int], list[Expense]] = {}
    for expense in expenses:
        key = (expense.incurred_date.year, expense.incurred_date.month)
        groups.setdefault(key, []).append(expense)

    result = []
    for (year, month) in sorted(groups, reverse=True):
        members = sorted(
            groups[(year, month)],
            key=lambda e: (e.incurred_date, e.recorded_at),
            reverse=True,
        )
        result.append(MonthGroup(
            label=date(year, month, 1).strftime("%B %Y"),
            year=year,
            month=month,
            expenses=members,
        ))
    return result


def category_id_by_name(categories: list[Category], name: str) -> Optional[int]:
    """Case-insensitive category lookup."""
    wanted = name.strip().lower()
    for category in categories:
        if category.name.lower() == wanted:
            return category.id
    return None


def new_expense_draft(
    categories: list[Category],
    payer_id: int,
    today: Optional[date] = None,
) -> ExpenseCreate:
    """
    Blank form values: the viewer pays, first category, today, even split.

    Raises:
        ValueError: If there are no categories to choose from
    """
    if not categories:
        raise ValueError("Add a category before recording expenses")
    return ExpenseCreate(
        payer_id=payer_id,
        amount=0,
        category_id=categories[0].id,
        incurred_date=today or date.today(),
        split_type=SplitType.EVEN_SPLIT,
    )


def preset_draft(
    preset: ExpensePreset,
    categories: list[Category],
    payer_id: int,
    today: Optional[date] = None,
) -> ExpenseCreate:
    """
    Form values for a quick-add preset.

    The preset's category is looked up by name; the first category is
    used when it doesn't exist. The amount is left at zero for the
    user to fill in.
    """
    draft = new_expense_draft(categories, payer_id, today)
    description, category_name = PRESET_DEFAULTS[preset]
    category_id = category_id_by_name(categories, category_name)
    return draft.model_copy(update={
        "description": description,
        "category_id": category_id if category_id is not None else draft.category_id,
    })
