from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence, TypeVar

from timeplan.allocation import AllocationLedger, ValidationResult
from timeplan.engine.settings import EngineSettings
from timeplan.lanes import Lane, LaneAllocator, LaneConflict, LaneEntity, LaneRepair
from timeplan.lanes.allocator import LaneIdFactory
from timeplan.milestones import DateWindow, Milestone, MilestonePositioner, Project
from timeplan.recurrence import RecurrenceExpander, RecurrenceSpec

T = TypeVar("T")


class Engine:
    """The pure contracts offered to UI and persistence collaborators."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        lane_id_factory: Optional[LaneIdFactory] = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        s = self._settings
        self._expander = RecurrenceExpander(
            safety_cap=s.safety_cap,
            open_ended_cap=s.open_ended_cap,
            look_ahead_days=s.look_ahead_days,
            batch_size=s.batch_size,
            hard_cap=s.hard_cap,
            excessive_threshold=s.excessive_threshold,
        )
        self._lanes = LaneAllocator(lane_id_factory)

    def expand_recurrence(self, spec: RecurrenceSpec, project: Project) -> list[date]:
        return self._expander.expand_for_project(spec, project)

    def validate_milestone_budget(
        self,
        existing: Iterable[Milestone],
        candidate_hours: float,
        budget_hours: float,
        continuous: bool = False,
    ) -> ValidationResult:
        return AllocationLedger(budget_hours, continuous=continuous).validate_add(existing, candidate_hours)

    def compute_milestone_window(
        self,
        existing: Sequence[Milestone],
        candidate: Milestone,
        project: Project,
    ) -> DateWindow:
        return MilestonePositioner(project).find_gap(existing, candidate)

    def check_lane_conflict(
        self,
        entity: LaneEntity,
        lane_members: Sequence[LaneEntity],
    ) -> Optional[LaneConflict]:
        return self._lanes.check_conflict(entity, lane_members)

    def repair_lanes(
        self,
        group_members: Iterable[LaneEntity],
        lanes: Iterable[Lane] = (),
        group_id: Optional[str] = None,
    ) -> LaneRepair:
        return self._lanes.repair(group_members, lanes, group_id)

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def expander(self) -> RecurrenceExpander:
        return self._expander

    @property
    def lanes(self) -> LaneAllocator:
        return self._lanes


def pick_color(entity_count: int, palette: Sequence[T]) -> T:
    """Colour for the next entity, derived from how many already exist."""
    if not palette:
        raise ValueError("Palette must not be empty.")
    if entity_count < 0:
        raise ValueError(f"Entity count must be >= 0; got {entity_count}.")
    return palette[entity_count % len(palette)]


# Stateless; shared by the module-level contracts below.
_default = Engine()


def expand_recurrence(spec: RecurrenceSpec, project: Project) -> list[date]:
    return _default.expand_recurrence(spec, project)


def validate_milestone_budget(
    existing: Iterable[Milestone],
    candidate_hours: float,
    budget_hours: float,
    continuous: bool = False,
) -> ValidationResult:
    return _default.validate_milestone_budget(existing, candidate_hours, budget_hours, continuous)


def compute_milestone_window(
    existing: Sequence[Milestone],
    candidate: Milestone,
    project: Project,
) -> DateWindow:
    return _default.compute_milestone_window(existing, candidate, project)


def check_lane_conflict(entity: LaneEntity, lane_members: Sequence[LaneEntity]) -> Optional[LaneConflict]:
    return _default.check_lane_conflict(entity, lane_members)


def repair_lanes(
    group_members: Iterable[LaneEntity],
    lanes: Iterable[Lane] = (),
    group_id: Optional[str] = None,
) -> LaneRepair:
    return _default.repair_lanes(group_members, lanes, group_id)
