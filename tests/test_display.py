"""
Tests for display derivation.

Everything is computed against an explicit viewer id.
"""

import pytest

from splitledger.models.ledger import BalanceSummary
from splitledger.settlement import (
    AmountTone,
    BalancePosition,
    amount_tone,
    category_color,
    category_icon,
    display_amount,
    format_signed_amount,
    net_balance_text,
    signed_amount,
    viewer_position,
)


class TestExpenseAmounts:
    """Per-expense amounts from the viewer's side."""

    def test_display_amount_even_split(self, make_expense):
        assert display_amount(make_expense(amount="30", split_type="50/50")) == 15

    def test_display_amount_full(self, make_expense):
        assert display_amount(make_expense(amount="30", split_type="100-other")) == 30
        assert display_amount(make_expense(amount="30", split_type="joint")) == 30

    def test_tone_when_viewer_paid(self, make_expense):
        expense = make_expense(payer_id=1)
        assert amount_tone(expense, 1) is AmountTone.OWED_TO_VIEWER

    def test_tone_when_other_paid(self, make_expense):
        expense = make_expense(payer_id=2)
        assert amount_tone(expense, 1) is AmountTone.VIEWER_OWES

    def test_tone_when_settled(self, make_expense):
        expense = make_expense(payer_id=1, is_settled=True)
        assert amount_tone(expense, 1) is AmountTone.SETTLED

    def test_tone_without_viewer(self, make_expense):
        assert amount_tone(make_expense(), None) is AmountTone.NEUTRAL

    def test_tone_for_unknown_split(self, make_expense):
        assert amount_tone(make_expense(split_type="joint"), 1) is AmountTone.NEUTRAL

    def test_signed_amount(self, make_expense):
        assert signed_amount(make_expense(payer_id=1, amount="20"), 1) == 10
        assert signed_amount(make_expense(payer_id=2, amount="20"), 1) == -10

    def test_format_signed_amount(self, make_expense):
        owed = make_expense(payer_id=1, amount="100", split_type="50-50")
        owes = make_expense(payer_id=2, amount="15", split_type="100-other")
        settled = make_expense(payer_id=2, amount="15", split_type="100-other", is_settled=True)
        settled_even = make_expense(payer_id=2, amount="15", is_settled=True)

        assert format_signed_amount(owed, 1, "€") == "+€50.00"
        assert format_signed_amount(owes, 1, "€") == "-€15.00"
        assert format_signed_amount(settled, 1, "€") == "€15.00"
        assert format_signed_amount(settled_even, 1, "€") == "€7.50"

    def test_format_uses_configured_currency(self, make_expense, monkeypatch):
        monkeypatch.setenv("CURRENCY_SYMBOL", "$")
        expense = make_expense(payer_id=1, amount="10")
        assert format_signed_amount(expense, 1) == "+$5.00"


class TestBalanceText:
    """The one-line balance message."""

    def test_viewer_owes(self):
        summary = BalanceSummary(user1_owes=30, user2_owes=10)
        assert viewer_position(summary, 1, 2, 1, tolerance=0.01) is BalancePosition.OWES
        assert net_balance_text(summary, 1, 2, 1, "€") == "You owe €20.00"

    def test_viewer_is_owed(self):
        summary = BalanceSummary(user1_owes=30, user2_owes=10)
        assert viewer_position(summary, 1, 2, 2, tolerance=0.01) is BalancePosition.OWED
        assert net_balance_text(summary, 1, 2, 2, "€") == "You are owed €20.00"

    def test_settled_up_within_tolerance(self):
        summary = BalanceSummary(user1_owes=10.004, user2_owes=10)
        assert net_balance_text(summary, 1, 2, 1, "€") == "All settled up!"

    def test_no_viewer(self):
        summary = BalanceSummary(user1_owes=30)
        assert viewer_position(summary, 1, 2, None) is BalancePosition.UNKNOWN
        assert net_balance_text(summary, 1, 2, None) == "No balance data"

    def test_missing_participant(self):
        assert net_balance_text(BalanceSummary.zero(), 1, None, 1) == "No balance data"

    def test_viewer_outside_participants(self):
        summary = BalanceSummary(user1_owes=30)
        assert viewer_position(summary, 1, 2, 3, tolerance=0.01) is BalancePosition.UNKNOWN


class TestCategoryStyle:
    """Keyword-based icons and colours."""

    @pytest.mark.parametrize("name,icon", [
        ("Groceries", "🛒"),
        ("health & pharmacy", "💊"),
        ("Monthly Rent", "🏠"),
        ("Something else", "📋"),
        (None, "📋"),
    ])
    def test_icon(self, name, icon):
        assert category_icon(name) == icon

    def test_color(self):
        assert category_color("Groceries") == "#16a34a"
        assert category_color("") == "#64748b"
