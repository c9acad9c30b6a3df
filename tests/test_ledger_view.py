"""Tests for ledger views: ordering, filters, month groups and drafts."""

from datetime import date, datetime

import pytest

from splitledger.models.ledger import Category, SplitType
from splitledger.queries import (
    ALL_CATEGORIES,
    ExpensePreset,
    category_id_by_name,
    filter_by_category,
    filter_by_category_name,
    group_by_month,
    new_expense_draft,
    preset_draft,
    sort_newest_first,
)


class TestOrderingAndFilters:
    """Sorting and category filters."""

    def test_sort_newest_first(self, make_expense):
        old = make_expense(recorded_at=datetime(2025, 1, 1))
        new = make_expense(recorded_at=datetime(2025, 2, 1))
        assert sort_newest_first([old, new]) == [new, old]

    def test_filter_all(self, make_expense):
        expenses = [make_expense(category_id=1), make_expense(category_id=2)]
        assert filter_by_category(expenses, ALL_CATEGORIES) == expenses
        assert filter_by_category(expenses, None) == expenses

    def test_filter_by_id(self, make_expense):
        groceries = make_expense(category_id=1)
        health = make_expense(category_id=2)
        assert filter_by_category([groceries, health], 2) == [health]
        assert filter_by_category([groceries, health], "1") == [groceries]

    def test_filter_by_name(self, make_expense):
        groceries = make_expense(category=Category(id=1, name="Groceries"))
        other = make_expense(category_id=2)
        assert filter_by_category_name([groceries, other], "groceries") == [groceries]

    def test_category_id_by_name(self, categories):
        assert category_id_by_name(categories, " HEALTH ") == 2
        assert category_id_by_name(categories, "Travel") is None


class TestGroupByMonth:
    """Month grouping for the expense list."""

    def test_groups_newest_month_first(self, make_expense):
        march = make_expense(incurred_date=date(2025, 3, 5))
        february = make_expense(incurred_date=date(2025, 2, 20))
        december = make_expense(incurred_date=date(2024, 12, 31))

        groups = group_by_month([february, december, march])

        assert [g.label for g in groups] == ["March 2025", "February 2025", "December 2024"]
        assert groups[0].expenses == [march]

    def test_newest_first_within_month(self, make_expense):
        early = make_expense(incurred_date=date(2025, 3, 1))
        late = make_expense(incurred_date=date(2025, 3, 28))
        groups = group_by_month([early, late])
        assert groups[0].expenses == [late, early]

    def test_group_total(self, make_expense):
        groups = group_by_month([make_expense(amount="10"), make_expense(amount="2.5")])
        assert groups[0].total == pytest.approx(12.5)

    def test_empty(self):
        assert group_by_month([]) == []


class TestDrafts:
    """Blank and preset drafts for the add form."""

    def test_new_draft(self, categories):
        draft = new_expense_draft(categories, payer_id=2, today=date(2025, 3, 1))
        assert draft.payer_id == 2
        assert draft.category_id == 1
        assert draft.incurred_date == date(2025, 3, 1)
        assert draft.split_type is SplitType.EVEN_SPLIT
        assert draft.amount == 0

    def test_new_draft_needs_categories(self):
        with pytest.raises(ValueError):
            new_expense_draft([], payer_id=1)

    def test_groceries_preset(self, categories):
        draft = preset_draft(ExpensePreset.GROCERIES, categories, payer_id=1)
        assert draft.description == "Hofer/Spar"
        assert draft.category_id == 1

    def test_pharmacy_preset(self, categories):
        draft = preset_draft(ExpensePreset.PHARMACY, categories, payer_id=1)
        assert draft.description == "Apotheke"
        assert draft.category_id == 2

    def test_drugstore_preset(self, categories):
        draft = preset_draft(ExpensePreset.DRUGSTORE, categories, payer_id=1)
        assert draft.description == "Bipa/Dm"
        assert draft.category_id == 2

    def test_preset_falls_back_to_first_category(self):
        draft = preset_draft(ExpensePreset.PHARMACY, [Category(id=7, name="Misc")], payer_id=1)
        assert draft.category_id == 7
