"""
Settlement Package

Turns the ledger's unsettled expenses into a two-person balance,
and derives the per-viewer values the UI shows.

Invariants:
- Settled expenses never contribute
- net_balance == user2_owes - user1_owes
- Bad records are skipped, never raised
"""

from splitledger.settlement.display import (
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
from splitledger.settlement.engine import (
    compute_balance,
    normalize_split_type,
    parse_number,
    participants,
    reconcile,
)

__all__ = [
    "AmountTone",
    "BalancePosition",
    "amount_tone",
    "category_color",
    "category_icon",
    "compute_balance",
    "display_amount",
    "format_signed_amount",
    "net_balance_text",
    "normalize_split_type",
    "parse_number",
    "participants",
    "reconcile",
    "signed_amount",
    "viewer_position",
]
