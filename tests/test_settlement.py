"""
Tests for the settlement engine.

The engine must:
1. Ignore settled expenses
2. Apportion even splits and payer-covers-other splits correctly
3. Skip malformed records without raising
4. Return the zero summary when participants are missing
"""

import pytest

from splitledger.models.ledger import BalanceSummary, SkipReason, SplitType
from splitledger.settlement import (
    compute_balance,
    normalize_split_type,
    parse_number,
    participants,
    reconcile,
)


def row(payer, amount, split="50-50", settled=False, **extra):
    """An expense row the way the store returns it."""
    return {"user_id": payer, "amount": amount, "split_type": split, "paid": settled, **extra}


def assert_zero(summary: BalanceSummary):
    assert summary.user1_owes == 0
    assert summary.user2_owes == 0
    assert summary.net_balance == 0


class TestComputeBalanceScenarios:
    """End-to-end balances over small ledgers."""

    def test_mixed_ledger(self):
        """Settled expenses are excluded; each split applies to the non-payer."""
        expenses = [
            row(1, 100, "50-50"),
            row(2, 30, "100-other"),
            row(1, 50, "50-50", settled=True),
        ]
        summary = compute_balance(expenses, 1, 2)
        assert summary.user1_owes == 30
        assert summary.user2_owes == 50
        assert summary.net_balance == 20

    def test_empty_ledger(self):
        assert_zero(compute_balance([], 1, 2))

    def test_only_one_user_known(self):
        """A missing participant yields zero regardless of expenses."""
        expenses = [row(1, 100), row(2, 40, "100-other")]
        assert_zero(compute_balance(expenses, 1, None))
        assert_zero(compute_balance(expenses, None, 2))

    def test_all_settled(self):
        expenses = [
            row(1, 100, settled=True),
            row(2, 70, "100-other", settled=True),
        ]
        assert_zero(compute_balance(expenses, 1, 2))

    def test_mixed_ledger_with_camel_case_fields(self):
        """Client-style payloads reconcile the same as store rows."""
        expenses = [
            {"payerId": 1, "amount": 100, "splitType": "50-50", "isSettled": False},
            {"payerId": 2, "amount": 30, "splitType": "100-other", "isSettled": False},
            {"payerId": 1, "amount": 50, "splitType": "50-50", "isSettled": True},
        ]
        summary = compute_balance(expenses, 1, 2)
        assert summary.user1_owes == 30
        assert summary.user2_owes == 50
        assert summary.net_balance == 20

    def test_accepts_expense_models(self, make_expense):
        expenses = [
            make_expense(payer_id=1, amount="100", split_type="50-50"),
            make_expense(payer_id=2, amount="30", split_type="100-other"),
            make_expense(payer_id=1, amount="50", is_settled=True),
        ]
        summary = compute_balance(expenses, 1, 2)
        assert summary.user1_owes == 30
        assert summary.user2_owes == 50

    def test_accepts_a_generator(self):
        summary = compute_balance((row(1, 10) for _ in range(3)), 1, 2)
        assert summary.user2_owes == 15


class TestSplitContributions:
    """Per-expense contribution rules."""

    def test_even_split_paid_by_user1(self):
        summary = compute_balance([row(1, 80, "50-50")], 1, 2)
        assert summary.user2_owes == 40
        assert summary.user1_owes == 0

    def test_payer_covers_other_paid_by_user2(self):
        summary = compute_balance([row(2, 25, "100-other")], 1, 2)
        assert summary.user1_owes == 25
        assert summary.user2_owes == 0

    def test_third_party_payer_contributes_nothing(self):
        assert_zero(compute_balance([row(3, 100, "50-50")], 1, 2))

    def test_unknown_split_contributes_nothing(self):
        """Unrecognised tokens are kept out of the debt totals."""
        expenses = [row(1, 100, "joint"), row(2, 60, ""), row(1, 10, None)]
        assert_zero(compute_balance(expenses, 1, 2))

    @pytest.mark.parametrize("token", ["50-50", "50/50", " 50/50 "])
    def test_even_split_synonyms(self, token):
        summary = compute_balance([row(1, 42, token)], 1, 2)
        assert summary.user2_owes == 21

    @pytest.mark.parametrize("token", ["100-other", "100% other", "100_other", "100-OTHER"])
    def test_payer_covers_other_synonyms(self, token):
        summary = compute_balance([row(1, 42, token)], 1, 2)
        assert summary.user2_owes == 42

    def test_paid_totals_track_unsettled_spend(self):
        expenses = [
            row(1, 100, "50-50"),
            row(1, 10, "joint"),
            row(2, 30, "100-other"),
            row(2, 99, settled=True),
        ]
        summary = compute_balance(expenses, 1, 2)
        assert summary.user1_paid == 110
        assert summary.user2_paid == 30


class TestLooseRecords:
    """The store's loose typing must not break the totals."""

    def test_numeric_string_amount(self):
        summary = compute_balance([row(1, "12.50")], 1, 2)
        assert summary.user2_owes == pytest.approx(6.25)

    def test_nested_payer(self):
        record = {"users": {"id": 2, "name": "Ben"}, "amount": 40, "split_type": "50-50"}
        summary = compute_balance([record], 1, 2)
        assert summary.user1_owes == 20

    def test_string_payer_id(self):
        summary = compute_balance([row("2", 40)], 1, 2)
        assert summary.user1_owes == 20

    def test_malformed_amount_is_skipped(self):
        """A bad record is excluded and the rest still count."""
        expenses = [row(1, "not-a-number"), row(1, 20), row(2, 10, "100-other")]
        summary = compute_balance(expenses, 1, 2)
        assert summary.user2_owes == 10
        assert summary.user1_owes == 10

    def test_missing_payer_is_skipped(self):
        expenses = [{"amount": 50, "split_type": "50-50"}, row(1, 20)]
        summary = compute_balance(expenses, 1, 2)
        assert summary.user2_owes == 10

    def test_nan_amount_is_skipped(self):
        assert_zero(compute_balance([row(1, float("nan"))], 1, 2))


class TestInvariants:
    """Properties that hold for any ledger."""

    LEDGER = [
        row(1, 100, "50-50"),
        row(2, 30, "100-other"),
        row(2, 18.4, "50/50"),
        row(1, 7, "100_other"),
        row(1, 50, settled=True),
    ]

    def test_net_balance_is_difference(self):
        summary = compute_balance(self.LEDGER, 1, 2)
        assert summary.net_balance == summary.user2_owes - summary.user1_owes

    def test_symmetry(self):
        """Swapping participants swaps debts and negates the net."""
        forward = compute_balance(self.LEDGER, 1, 2)
        backward = compute_balance(self.LEDGER, 2, 1)
        assert backward.user1_owes == forward.user2_owes
        assert backward.user2_owes == forward.user1_owes
        assert backward.net_balance == -forward.net_balance

    def test_idempotent(self):
        first = compute_balance(self.LEDGER, 1, 2)
        second = compute_balance(self.LEDGER, 1, 2)
        assert first == second

    def test_input_not_mutated(self):
        before = [dict(r) for r in self.LEDGER]
        compute_balance(self.LEDGER, 1, 2)
        assert self.LEDGER == before

    def test_summary_is_immutable(self):
        summary = compute_balance(self.LEDGER, 1, 2)
        with pytest.raises(Exception):
            summary.user1_owes = 0


class TestReconcile:
    """The skip report behind compute_balance."""

    def test_reports_skipped_records(self):
        expenses = [
            row(1, "abc", id=7),
            {"id": 8, "amount": 10, "split_type": "50-50"},
            row(1, 20, id=9),
            row(1, "oops", settled=True, id=10),
        ]
        report = reconcile(expenses, 1, 2)

        assert report.considered_count == 3
        assert report.skipped_count == 2
        reasons = {s.expense_id: s.reason for s in report.skipped}
        assert reasons == {"7": SkipReason.INVALID_AMOUNT, "8": SkipReason.INVALID_PAYER}
        assert report.summary.user2_owes == 10

    def test_raw_value_is_recorded(self):
        report = reconcile([row(1, "abc", id=1)], 1, 2)
        assert report.skipped[0].raw_value == "'abc'"

    def test_missing_participant_gives_empty_report(self):
        report = reconcile([row(1, "abc")], None, 2)
        assert report.skipped == []
        assert report.considered_count == 0


class TestHelpers:
    """Parsing and participant selection."""

    @pytest.mark.parametrize("value,expected", [
        (5, 5.0),
        ("12.5", 12.5),
        (" 3 ", 3.0),
        (None, None),
        (True, None),
        ("", None),
        ("x", None),
        (float("inf"), None),
    ])
    def test_parse_number(self, value, expected):
        assert parse_number(value) == expected

    def test_normalize_split_type(self):
        assert normalize_split_type("50/50") is SplitType.EVEN_SPLIT
        assert normalize_split_type("100% Other") is SplitType.PAYER_COVERS_OTHER
        assert normalize_split_type("joint") is None
        assert normalize_split_type(None) is None

    def test_participants_by_ascending_id(self, users):
        assert participants(list(reversed(users))) == (1, 2)

    def test_participants_with_one_user(self, users):
        assert participants(users[:1]) == (1, None)
        assert participants([]) == (None, None)

    def test_participants_from_rows(self):
        assert participants([{"id": 9}, {"id": 4}, {"id": 6}]) == (4, 6)
