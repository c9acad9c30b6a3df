"""
Split Ledger - Source Package

A household expense ledger shared by exactly two people.
Purchases are logged, tagged with a category, marked settled or
not, and reconciled into a running "who owes whom" balance.

DESIGN PRINCIPLES:
1. The balance is always recomputed from the expense list
2. Dirty records are skipped, never fatal
3. The viewer is passed explicitly, never observed
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Split Ledger Team"

from splitledger.config import configure_logging

configure_logging()
