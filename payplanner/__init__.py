"""
Pay Planner - Source Package

A pay-period projection engine for a personal finance tracker: recurring
expenses and bank accounts are projected onto the pay periods a user
visits, so each paycheck shows what falls due and what is left over.

DESIGN PRINCIPLES:
1. Master records are templates; period copies are disposable
2. Periods are created lazily, keyed by their start date
3. The in-memory snapshot only reflects persisted writes
4. Every significant change is auditable
5. Storage and identity providers are swappable
"""

__version__ = "1.0.0"
__author__ = "Pay Planner Team"
