"""
Personal Ledger - Source Package

A small personal finance ledger: named accounts with running balances,
income/expenditure history, and SIP / FD investments with maturity
projections, persisted to a plain text file.

DESIGN PRINCIPLES:
1. The balance is updated incrementally and never drifts
2. A rejected command changes nothing
3. One bad line in the data file never loses the rest
4. Every step is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Ledger Team"
