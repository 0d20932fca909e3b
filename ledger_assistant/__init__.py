"""
Ledger Assistant - Source Package

Reporting engine for a personal/family expense ledger. Transactions
captured elsewhere (receipt photos, voice, manual entry) are turned into
category breakdowns, a daily timeline and credit-card billing statements.

DESIGN PRINCIPLES:
1. The engine is pure: same input, same output, no I/O
2. Malformed data degrades to "Other" or zero, never to an exception
3. Derived views are recomputed, never stored
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledger Assistant Team"
