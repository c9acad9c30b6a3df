"""Ledger view package."""

from splitledger.queries.ledger_view import (
    ALL_CATEGORIES,
    PRESET_DEFAULTS,
    ExpensePreset,
    MonthGroup,
    category_id_by_name,
    filter_by_category,
    filter_by_category_name,
    group_by_month,
    new_expense_draft,
    preset_draft,
    sort_newest_first,
)

__all__ = [
    "ALL_CATEGORIES",
    "PRESET_DEFAULTS",
    "ExpensePreset",
    "MonthGroup",
    "category_id_by_name",
    "filter_by_category",
    "filter_by_category_name",
    "group_by_month",
    "new_expense_draft",
    "preset_draft",
    "sort_newest_first",
]
