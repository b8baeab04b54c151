from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence, Union

import numpy as np

from timeplan.allocation._exceptions import AllocationError
from timeplan.milestones import Project
from timeplan.recurrence import RecurrenceSpec

logger = logging.getLogger(__name__)

Allocatable = Union[float, Any]

# Float sums of hour fractions are compared with this slack.
_EPSILON = 1e-9


def _hours_of(items: Iterable[Allocatable]) -> np.ndarray:
    values = [
        item if isinstance(item, (int, float, np.number)) else item.time_allocation_hours
        for item in items
    ]
    hours = np.asarray(values, dtype=np.float64).reshape(-1)
    if not np.isfinite(hours).all():
        raise AllocationError("Allocations contain non-finite hours.")
    return hours


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    new_total: float
    overage: float
    budget: float
    reason: Optional[str] = None

    @property
    def utilization(self) -> float:
        return self.new_total / self.budget if self.budget > 0 else 0.0


@dataclass(frozen=True, slots=True)
class BudgetAnalysis:
    total_allocated: float
    budget: float
    remaining: float
    overage: float
    utilization: float
    average_allocation: float
    item_count: int
    is_over_budget: bool
    recommendations: list[str] = field(default_factory=list)


class AllocationLedger:
    """
    Sums hour allocations and checks them against a budget ceiling.

    Over-budget outcomes are reported as ``ValidationResult``s, never raised,
    so the caller decides whether to block or only warn.  Continuous projects
    are never blocked: their overage is informational.
    """

    HIGH_UTILIZATION: float = 0.9
    DOMINANCE: float = 0.5
    UNALLOCATED: float = 0.3

    def __init__(self, budget_hours: float, continuous: bool = False) -> None:
        budget = float(budget_hours)
        if not np.isfinite(budget) or budget < 0.0:
            raise AllocationError(f"Budget must be finite and non-negative; got {budget_hours}.")
        self._budget = budget
        self._continuous = bool(continuous)

    @classmethod
    def for_project(cls, project: Project) -> AllocationLedger:
        return cls(project.estimated_hours, continuous=project.continuous)

    # ── totals ───────────────────────────────────────────────────────────

    def total_allocated(self, items: Iterable[Allocatable]) -> float:
        return float(_hours_of(items).sum())

    def utilization(self, total: float) -> float:
        return total / self._budget if self._budget > 0 else 0.0

    def remaining(self, total: float) -> float:
        return self._budget - total

    def suggest_budget(self, total: float) -> float:
        """Smallest whole-hour budget covering ``total`` when it is over budget."""
        if total > self._budget + _EPSILON:
            return float(math.ceil(total))
        return self._budget

    @staticmethod
    def recurring_total(occurrences: Sequence[Any], hours_per_occurrence: float) -> float:
        return len(occurrences) * float(hours_per_occurrence)

    # ── validation ───────────────────────────────────────────────────────

    def validate_add(self, existing: Iterable[Allocatable], add_hours: float) -> ValidationResult:
        return self._check(self.total_allocated(existing), add_hours)

    def validate_update(
        self,
        existing: Iterable[Any],
        target_id: str,
        new_hours: float,
    ) -> ValidationResult:
        others = [item for item in existing if item.id != target_id]
        return self._check(self.total_allocated(others), new_hours)

    def validate_recurring(
        self,
        existing: Iterable[Allocatable],
        spec: RecurrenceSpec,
        occurrences: Sequence[Any],
    ) -> ValidationResult:
        added = self.recurring_total(occurrences, spec.time_allocation_hours)
        return self.validate_add(existing, added)

    def _check(self, current: float, hours: float) -> ValidationResult:
        hours = float(hours)
        if not np.isfinite(hours):
            raise AllocationError(f"Hours must be finite; got {hours}.")
        if hours < 0.0:
            return ValidationResult(
                False, current, 0.0, self._budget,
                f"Allocation must be non-negative; got {hours:g}h.",
            )

        new_total = current + hours
        overage = max(0.0, new_total - self._budget)
        if overage <= _EPSILON:
            return ValidationResult(True, new_total, 0.0, self._budget)

        if self._continuous:
            logger.debug("Continuous budget exceeded by %gh (not enforced)", overage)
            return ValidationResult(
                True, new_total, overage, self._budget,
                f"{new_total:g}h exceeds the {self._budget:g}h estimate by {overage:g}h; "
                f"continuous projects are not capped.",
            )
        return ValidationResult(
            False, new_total, overage, self._budget,
            f"Allocating {hours:g}h brings the total to {new_total:g}h, "
            f"{overage:g}h over the {self._budget:g}h budget.",
        )

    # ── analysis ─────────────────────────────────────────────────────────

    def analyze(self, items: Iterable[Allocatable]) -> BudgetAnalysis:
        hours = _hours_of(items)
        total = float(hours.sum())
        average = float(hours.mean()) if hours.size else 0.0
        overage = max(0.0, total - self._budget)
        return BudgetAnalysis(
            total_allocated=total,
            budget=self._budget,
            remaining=self.remaining(total),
            overage=overage,
            utilization=self.utilization(total),
            average_allocation=average,
            item_count=int(hours.size),
            is_over_budget=overage > _EPSILON,
            recommendations=self._recommend(hours, total),
        )

    def _recommend(self, hours: np.ndarray, total: float) -> list[str]:
        budget = self._budget
        notes: list[str] = []
        utilization = self.utilization(total)

        if total > budget + _EPSILON and not self._continuous:
            notes.append(
                f"Budget exceeded by {total - budget:.1f}h. "
                f"Reduce allocations or increase the project budget."
            )
        elif self.HIGH_UTILIZATION <= utilization < 1.0:
            notes.append(
                f"Budget utilization is {utilization * 100:.1f}%. "
                f"Consider leaving a buffer for unexpected work."
            )

        if hours.size == 0:
            if budget > 0:
                notes.append(f"Nothing is allocated yet; {budget:g}h of budget is available.")
            return notes

        if self.remaining(total) > budget * self.UNALLOCATED:
            notes.append(f"{self.remaining(total):.1f}h of the budget is still unallocated.")
        if hours.size > 1 and float(hours.max()) > budget * self.DOMINANCE:
            notes.append("One allocation uses over half of the budget; consider splitting it.")
        return notes

    # ── properties / repr ────────────────────────────────────────────────

    @property
    def budget(self) -> float:
        return self._budget

    @property
    def continuous(self) -> bool:
        return self._continuous

    def __repr__(self) -> str:
        return f"AllocationLedger(budget={self._budget:g}, continuous={self._continuous})"
