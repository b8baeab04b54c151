# src/timeplan/allocation/__init__.py
"""
timeplan.allocation
~~~~~~~~~~~~~~~~~~~

Hour budgets.  An ``AllocationLedger`` totals the hours allocated to a
project's milestones and checks additions and updates against the project's
budget ceiling.  Budget overruns come back as a ``ValidationResult``; only
malformed numbers raise ``AllocationError``.

Basic usage::

    from timeplan.allocation import AllocationLedger

    ledger = AllocationLedger(10.0)
    ledger.validate_add([3.0, 4.0], 2.0)     # is_valid=True,  new_total=9
    ledger.validate_add([3.0, 4.0], 5.0)     # is_valid=False, new_total=12, overage=2

Items may be plain numbers or any object with ``time_allocation_hours``
(milestones); ``validate_update`` additionally needs an ``id``.

Continuous projects are never blocked::

    AllocationLedger(10.0, continuous=True).validate_add([9.0], 5.0).is_valid   # True

Public API
----------
AllocationLedger      Totals, validation, utilization and budget analysis.
ValidationResult      is_valid / new_total / overage / budget / reason.
BudgetAnalysis        Snapshot with recommendations.
AllocationError       Raised for non-finite hours or a negative budget.
"""

from __future__ import annotations

from timeplan.allocation._exceptions import AllocationError
from timeplan.allocation.ledger import AllocationLedger, BudgetAnalysis, ValidationResult

__all__ = [
    "AllocationError",
    "AllocationLedger",
    "BudgetAnalysis",
    "ValidationResult",
]
