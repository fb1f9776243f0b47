"""
Finance Tracker - Source Package

A personal finance tracker: expenses, income and budget-tracked
projects, with derived summaries and charts.

DESIGN PRINCIPLES:
1. Derived figures are recomputed, never stored
2. Fail early, fail visibly (validate before touching storage)
3. No silent corrections
4. Every mutation must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
