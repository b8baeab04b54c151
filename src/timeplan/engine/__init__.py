# src/timeplan/engine/__init__.py
"""
timeplan.engine
~~~~~~~~~~~~~~~

The five pure contracts consumed by UI and persistence collaborators, wired
from the component subpackages.  Nothing here performs I/O; callers persist
or render the returned values themselves.

Basic usage::

    from datetime import date
    from timeplan.engine import expand_recurrence, validate_milestone_budget
    from timeplan.milestones import Project
    from timeplan.recurrence import RecurrenceSpec

    project = Project("p1", date(2025, 1, 1), date(2025, 1, 31), estimated_hours=40)
    spec = RecurrenceSpec("r1", "weekly", weekly_day_of_week=0, time_allocation_hours=8)

    dates = expand_recurrence(spec, project)                  # four Mondays
    validate_milestone_budget([32.0], 10.0, project.estimated_hours)
    # ValidationResult(is_valid=False, new_total=42.0, overage=2.0, ...)

Tunables are bundled in ``EngineSettings``; build a configured ``Engine`` to
use non-default caps::

    engine = Engine(EngineSettings.from_mapping({"safety_cap": 50}))

Public API
----------
Engine                       Contracts bound to one EngineSettings.
EngineSettings               Caps, look-ahead and batch size.
expand_recurrence            RecurrenceSpec + Project → occurrence dates.
validate_milestone_budget    Existing allocations + candidate → ValidationResult.
compute_milestone_window     Siblings + candidate → DateWindow.
check_lane_conflict          Entity + lane members → LaneConflict or None.
repair_lanes                 Group members (+ lanes) → LaneRepair diff.
pick_color                   Deterministic colour from an entity count.
"""

from __future__ import annotations

from timeplan.engine.engine import (
    Engine,
    check_lane_conflict,
    compute_milestone_window,
    expand_recurrence,
    pick_color,
    repair_lanes,
    validate_milestone_budget,
)
from timeplan.engine.settings import EngineSettings

__all__ = [
    "Engine",
    "EngineSettings",
    "check_lane_conflict",
    "compute_milestone_window",
    "expand_recurrence",
    "pick_color",
    "repair_lanes",
    "validate_milestone_budget",
]
