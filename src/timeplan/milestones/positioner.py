from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from timeplan.milestones._exceptions import DateCollisionError, PositioningError
from timeplan.milestones.models import Milestone, Project

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True, slots=True)
class DateWindow:
    min_date: date
    max_date: Optional[date]

    @property
    def is_empty(self) -> bool:
        return self.max_date is not None and self.max_date < self.min_date

    def contains(self, day: date) -> bool:
        if day < self.min_date:
            return False
        return self.max_date is None or day <= self.max_date


@dataclass(frozen=True, slots=True)
class PositionCheck:
    is_valid: bool
    window: Optional[DateWindow]
    reason: Optional[str] = None


class MilestonePositioner:
    """
    Placement rules for the milestones of one project.

    Milestones keep at least one clear day from the project's start and end
    and from each other: the legal window for a milestone is bounded one day
    inside its nearest neighbours.  Two milestones never share a due date.
    """

    def __init__(self, project: Project) -> None:
        self._project = project

    @property
    def project(self) -> Project:
        return self._project

    @property
    def bounds(self) -> DateWindow:
        end = self._project.end_date
        return DateWindow(
            min_date=self._project.start_date + _ONE_DAY,
            max_date=None if end is None else end - _ONE_DAY,
        )

    # ── windows ──────────────────────────────────────────────────────────

    def find_gap(self, sorted_siblings: Sequence[Milestone], candidate: Milestone) -> DateWindow:
        others = sorted(
            (s for s in sorted_siblings if s.id != candidate.id),
            key=lambda s: s.due_date,
        )
        due = candidate.due_date
        for sibling in others:
            if sibling.due_date == due:
                raise DateCollisionError(
                    f"Milestone {candidate.id!r} shares its due date {due} with {sibling.id!r}."
                )

        earlier = [s for s in others if s.due_date < due]
        later = [s for s in others if s.due_date > due]
        bounds = self.bounds
        return DateWindow(
            min_date=earlier[-1].due_date + _ONE_DAY if earlier else bounds.min_date,
            max_date=later[0].due_date - _ONE_DAY if later else bounds.max_date,
        )

    def default_date(self, siblings: Iterable[Milestone]) -> date:
        """
        Day after the last sibling (or the project start), kept before the
        project end.  When that day is already taken, the nearest earlier
        free day, not before the project start, is used instead.
        """
        start = self._project.start_date
        taken = {s.due_date for s in siblings}
        suggested = start + _ONE_DAY
        if taken:
            suggested = max(suggested, max(taken) + _ONE_DAY)
        end = self._project.end_date
        if end is not None:
            suggested = min(suggested, end - _ONE_DAY)
        while suggested in taken and suggested > start:
            suggested -= _ONE_DAY
        if suggested in taken or suggested < start:
            raise PositioningError(
                f"No free day for a new milestone in project {self._project.id!r}."
            )
        return suggested

    # ── validation ───────────────────────────────────────────────────────

    def validate_within_project(self, due_date: date) -> PositionCheck:
        project = self._project
        if due_date < project.start_date:
            reason = f"Milestone date {due_date} is before the project start {project.start_date}."
        elif project.end_date is not None and not project.continuous and due_date > project.end_date:
            reason = f"Milestone date {due_date} is after the project end {project.end_date}."
        else:
            return PositionCheck(True, self.bounds)
        return PositionCheck(False, self.bounds, reason)

    def validate_position(self, siblings: Sequence[Milestone], candidate: Milestone) -> PositionCheck:
        within = self.validate_within_project(candidate.due_date)
        if not within.is_valid:
            return within
        try:
            window = self.find_gap(siblings, candidate)
        except DateCollisionError as exc:
            return PositionCheck(False, None, str(exc))
        if window.is_empty:
            return PositionCheck(False, window, "No free day is left between the neighbouring milestones.")
        if not window.contains(candidate.due_date):
            return PositionCheck(
                False,
                window,
                f"Milestone date {candidate.due_date} must keep one clear day from its "
                f"neighbours and the project bounds.",
            )
        return PositionCheck(True, window)


# ── ordering ─────────────────────────────────────────────────────────────

def has_unique_orders(milestones: Iterable[Milestone]) -> bool:
    orders = [m.order for m in milestones]
    return len(orders) == len(set(orders))


def normalize_orders(milestones: Iterable[Milestone]) -> list[Milestone]:
    """Renumber ``order`` 0..n-1 by current order, then due date."""
    ranked = sorted(milestones, key=lambda m: (m.order, m.due_date))
    return [m if m.order == i else replace(m, order=i) for i, m in enumerate(ranked)]
