"""
Display Derivation

Per-expense and per-balance values shown to the person looking at
the ledger (the "viewer").

DESIGN DECISION: The viewer is always an explicit argument.
Nothing here reads a stored preference, so a rendered value can
never be computed against a stale viewer.
"""

from enum import Enum
from typing import Optional

from splitledger.config import get_settings
from splitledger.models.ledger import BalanceSummary, Expense, SplitType


class AmountTone(str, Enum):
    """How an expense amount should be coloured for the viewer."""
    OWED_TO_VIEWER = "owed_to_viewer"
    VIEWER_OWES = "viewer_owes"
    SETTLED = "settled"
    NEUTRAL = "neutral"


class BalancePosition(str, Enum):
    """The viewer's side of the overall balance."""
    OWED = "owed"
    OWES = "owes"
    SETTLED_UP = "settled_up"
    UNKNOWN = "unknown"


def display_amount(expense: Expense) -> float:
    """Half the amount for an even split, otherwise the full amount."""
    amount = float(expense.amount)
    if expense.split is SplitType.EVEN_SPLIT:
        return amount / 2
    return amount


def amount_tone(expense: Expense, viewer_id: Optional[int]) -> AmountTone:
    """
    Whether the viewer is owed or owes on this expense.

    Settled expenses are neutral regardless of payer. Without a viewer,
    or for a split token that implies no debt, the tone is neutral.
    """
    if expense.is_settled:
        return AmountTone.SETTLED
    if viewer_id is None or expense.split is None:
        return AmountTone.NEUTRAL
    if expense.payer_id == viewer_id:
        return AmountTone.OWED_TO_VIEWER
    return AmountTone.VIEWER_OWES


def signed_amount(expense: Expense, viewer_id: Optional[int]) -> float:
    """Display amount, negated when the viewer owes it."""
    amount = display_amount(expense)
    if amount_tone(expense, viewer_id) is AmountTone.VIEWER_OWES:
        return -amount
    return amount


def format_signed_amount(
    expense: Expense,
    viewer_id: Optional[int],
    currency_symbol: Optional[str] = None,
) -> str:
    """
    Banking-style amount: "+€12.50" owed to the viewer, "-€12.50" owed
    by the viewer, "€12.50" when settled or neutral.
    """
    symbol = currency_symbol if currency_symbol is not None else get_settings().app.currency_symbol
    amount = display_amount(expense)
    tone = amount_tone(expense, viewer_id)
    if tone is AmountTone.OWED_TO_VIEWER:
        return f"+{symbol}{amount:.2f}"
    if tone is AmountTone.VIEWER_OWES:
        return f"-{symbol}{amount:.2f}"
    return f"{symbol}{amount:.2f}"


def viewer_position(
    summary: BalanceSummary,
    user1_id: Optional[int],
    user2_id: Optional[int],
    viewer_id: Optional[int],
    tolerance: Optional[float] = None,
) -> BalancePosition:
    """Where the viewer stands in the overall balance."""
    if viewer_id is None or user1_id is None or user2_id is None:
        return BalancePosition.UNKNOWN

    if tolerance is None:
        tolerance = get_settings().app.settled_tolerance
    if abs(summary.net_balance) < tolerance:
        return BalancePosition.SETTLED_UP

    if viewer_id == user1_id:
        viewer_owes, other_owes = summary.user1_owes, summary.user2_owes
    elif viewer_id == user2_id:
        viewer_owes, other_owes = summary.user2_owes, summary.user1_owes
    else:
        return BalancePosition.UNKNOWN

    return BalancePosition.OWES if viewer_owes > other_owes else BalancePosition.OWED


def net_balance_text(
    summary: BalanceSummary,
    user1_id: Optional[int],
    user2_id: Optional[int],
    viewer_id: Optional[int],
    currency_symbol: Optional[str] = None,
) -> str:
    """One-line balance message from the viewer's perspective."""
    if viewer_id is None or user1_id is None or user2_id is None:
        return "No balance data"

    symbol = currency_symbol if currency_symbol is not None else get_settings().app.currency_symbol
    position = viewer_position(summary, user1_id, user2_id, viewer_id)
    net = abs(summary.net_balance)

    if position is BalancePosition.SETTLED_UP:
        return "All settled up!"
    if position is BalancePosition.OWES:
        return f"You owe {symbol}{net:.2f}"
    if position is BalancePosition.OWED:
        return f"You are owed {symbol}{net:.2f}"
    return "Balance unknown"


# Keyword -> (icon, colour). First match wins.
_CATEGORY_STYLES: list[tuple[tuple[str, ...], str, str]] = [
    (("rent", "housing"), "🏠", "#6366f1"),
    (("food", "groceries", "grocery"), "🛒", "#16a34a"),
    (("health", "medical", "pharmacy"), "💊", "#3b82f6"),
    (("transport", "car", "gas"), "🚗", "#f59e0b"),
    (("entertainment", "fun"), "🎬", "#ef4444"),
    (("utilities", "electricity", "water"), "⚡", "#0891b2"),
    (("shopping", "clothes", "clothing"), "🛍️", "#ec4899"),
    (("restaurant", "dining"), "🍽️", "#f97316"),
    (("travel", "vacation"), "✈️", "#84cc16"),
    (("education", "school"), "📚", "#8b5cf6"),
    (("fitness", "gym", "sport"), "🏋️", "#14b8a6"),
    (("pet", "animal"), "🐕", "#a855f7"),
]
_DEFAULT_ICON = "📋"
_DEFAULT_COLOR = "#64748b"


def _category_style(name: Optional[str]) -> tuple[str, str]:
    if not name:
        return _DEFAULT_ICON, _DEFAULT_COLOR
    lowered = name.lower()
    for keywords, icon, color in _CATEGORY_STYLES:
        if any(keyword in lowered for keyword in keywords):
            return icon, color
    return _DEFAULT_ICON, _DEFAULT_COLOR


def category_icon(name: Optional[str]) -> str:
    return _category_style(name)[0]


def category_color(name: Optional[str]) -> str:
    return _category_style(name)[1]
