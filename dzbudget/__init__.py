"""
DzBudget - Source Package

A personal budget tracker for a single household: income and expenses
recorded per account and category, monthly category limits, a savings
goal, and dashboards derived from the transaction log.

DESIGN PRINCIPLES:
1. Derived figures are always recomputed from the log, never stored
2. Invalid entries are refused, never silently corrected
3. Every state change is auditable
4. Storage layer is swappable
5. The AI only comments on the data, it never changes it
"""

__version__ = "1.0.0"
__author__ = "DzBudget Team"
