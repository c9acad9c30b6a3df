"""
Settlement Engine

Reconciles the outstanding expenses of a two-person ledger into
a single balance: how much each participant owes the other.

DESIGN DECISION: The engine is a pure function of its inputs.
- No shared state, safe to call from anywhere
- Its only output is a debug log line per skipped record
- Recomputed from scratch on every read (no incremental updates)
- Never raises on a bad record; the record is skipped instead

Records are accepted either as Expense models or as raw rows straight
from the store, because the store's typing is loose: amounts may be
numeric strings, the payer may only be present as an embedded row, and
split tokens vary in case and punctuation.
"""

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional, Union

import structlog

from splitledger.models.ledger import (
    BalanceReport,
    BalanceSummary,
    Expense,
    SkippedExpense,
    SkipReason,
    SplitType,
    User,
)


ExpenseRecord = Union[Expense, Mapping[str, Any]]

_logger = structlog.get_logger(__name__)

# Field names: ours, then the store's, then camelCase client payloads
_PAYER_ID_FIELDS = ("payer_id", "user_id", "payerId")
_PAYER_RELATION_FIELDS = ("payer", "user", "users")
_SETTLED_FIELDS = ("is_settled", "paid", "isSettled")
_SPLIT_FIELDS = ("split_type", "splitType")


def _get(record: ExpenseRecord, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _first(record: ExpenseRecord, names: Sequence[str]) -> Any:
    """First non-None value among the candidate field names."""
    for name in names:
        value = _get(record, name)
        if value is not None:
            return value
    return None


def parse_number(value: Any) -> Optional[float]:
    """
    Coerce a loosely typed value to a finite float.

    Accepts numbers, Decimals and numeric strings (surrounding whitespace
    allowed). Returns None for None, booleans, empty or non-numeric
    strings, NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def normalize_split_type(token: Any) -> Optional[SplitType]:
    """Interpret a split token; None when it implies no debt."""
    return SplitType.from_token(token)


def is_settled(record: ExpenseRecord) -> bool:
    return bool(_first(record, _SETTLED_FIELDS))


def payer_id_of(record: ExpenseRecord) -> Optional[float]:
    """
    Payer id from the direct column, falling back to the embedded payer row.

    Returned as a float so ids stored as text compare equal to ints.
    """
    raw = _first(record, _PAYER_ID_FIELDS)
    if raw is None:
        related = _first(record, _PAYER_RELATION_FIELDS)
        if related is not None:
            raw = related.get("id") if isinstance(related, Mapping) else getattr(related, "id", None)
    return parse_number(raw)


def participants(users: Iterable[Union[User, Mapping[str, Any]]]) -> tuple[Optional[int], Optional[int]]:
    """
    Pick user1 and user2: the first two users in ascending id order.

    Missing participants come back as None, which makes
    compute_balance return the zero summary.
    """
    ids = []
    for user in users:
        user_id = user.get("id") if isinstance(user, Mapping) else getattr(user, "id", None)
        if user_id is not None:
            ids.append(user_id)
    ids = sorted(set(ids))
    user1_id = ids[0] if len(ids) > 0 else None
    user2_id = ids[1] if len(ids) > 1 else None
    return user1_id, user2_id


def reconcile(
    expenses: Iterable[ExpenseRecord],
    user1_id: Any,
    user2_id: Any,
) -> BalanceReport:
    """
    Compute the balance and report every record left out of it.

    Args:
        expenses: Expense models or raw store rows, in any order
        user1_id: Id of the participant designated user1
        user2_id: Id of the participant designated user2

    Returns:
        BalanceReport with the summary, skipped records and the
        number of unsettled records examined
    """
    user1 = parse_number(user1_id)
    user2 = parse_number(user2_id)
    if user1 is None or user2 is None:
        return BalanceReport()

    user1_owes = 0.0
    user2_owes = 0.0
    user1_paid = 0.0
    user2_paid = 0.0
    considered = 0
    skipped = []

    for record in expenses:
        if is_settled(record):
            continue
        considered += 1

        payer = payer_id_of(record)
        if payer is None:
            skipped.append(_skip(record, SkipReason.INVALID_PAYER, _first(record, _PAYER_ID_FIELDS)))
            continue

        raw_amount = _get(record, "amount")
        amount = parse_number(raw_amount)
        if amount is None:
            skipped.append(_skip(record, SkipReason.INVALID_AMOUNT, raw_amount))
            continue

        user1_paid_it = payer == user1
        user2_paid_it = payer == user2

        if user1_paid_it:
            user1_paid += amount
        elif user2_paid_it:
            user2_paid += amount

        split = normalize_split_type(_first(record, _SPLIT_FIELDS))
        if split is SplitType.EVEN_SPLIT:
            share = amount / 2
        elif split is SplitType.PAYER_COVERS_OTHER:
            share = amount
        else:
            # Unrecognised split: no outstanding obligation
            continue

        if user1_paid_it:
            user2_owes += share
        elif user2_paid_it:
            user1_owes += share

    summary = BalanceSummary(
        user1_owes=user1_owes,
        user2_owes=user2_owes,
        user1_paid=user1_paid,
        user2_paid=user2_paid,
    )
    return BalanceReport(
        summary=summary,
        skipped=skipped,
        considered_count=considered,
    )


def compute_balance(
    expenses: Iterable[ExpenseRecord],
    user1_id: Any,
    user2_id: Any,
) -> BalanceSummary:
    """
    Outstanding balance between user1 and user2.

    Settled expenses are ignored. For each remaining expense the
    non-payer owes half (even split) or all (payer covers other) of the
    amount; third-party payers and unknown split tokens contribute
    nothing. Returns the zero summary when either id is missing.
    """
    return reconcile(expenses, user1_id, user2_id).summary


def _skip(record: ExpenseRecord, reason: SkipReason, raw_value: Any) -> SkippedExpense:
    record_id = _get(record, "id")
    _logger.debug(
        "expense_skipped",
        expense_id=record_id,
        reason=reason.value,
        raw_value=repr(raw_value),
    )
    return SkippedExpense(
        expense_id=str(record_id) if record_id is not None else None,
        reason=reason,
        raw_value=repr(raw_value),
    )
