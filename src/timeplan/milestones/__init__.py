# src/timeplan/milestones/__init__.py
"""
timeplan.milestones
~~~~~~~~~~~~~~~~~~~

Milestone records and the rules that place them inside a project.

A milestone is either a ``Draft`` (still in the caller's working set) or a
``Persisted`` record; both carry the same payload, and the variant is told
apart by type rather than by optional fields.  Milestones generated from a
recurrence carry the id of that recurrence in ``source_spec_id``.

Basic usage::

    from datetime import date
    from timeplan.milestones import Draft, MilestonePositioner, Project

    project = Project("p1", date(2025, 1, 1), date(2025, 1, 31), estimated_hours=40)
    positioner = MilestonePositioner(project)

    due = positioner.default_date([])                         # → 2025-01-02
    draft = Draft("m1", "Kick-off", due, time_allocation_hours=4, project_id="p1")
    window = positioner.find_gap([], draft)                   # 2025-01-02 .. 2025-01-30

Public API
----------
Project               Planning project with start, optional end and budget.
Draft, Persisted      The two milestone variants; ``Milestone`` is their union.
MilestonePositioner   Legal windows, default dates and position checks.
DateWindow            Inclusive [min_date, max_date] window (open max allowed).
PositionCheck         Structured result of ``validate_position``.
MilestoneError        Base exception; PositioningError, DateCollisionError.
"""

from __future__ import annotations

from timeplan.milestones._exceptions import (
    DateCollisionError,
    MilestoneError,
    PositioningError,
)
from timeplan.milestones.models import Draft, Milestone, Persisted, Project
from timeplan.milestones.positioner import (
    DateWindow,
    MilestonePositioner,
    PositionCheck,
    has_unique_orders,
    normalize_orders,
)

__all__ = [
    "DateCollisionError",
    "DateWindow",
    "Draft",
    "Milestone",
    "MilestoneError",
    "MilestonePositioner",
    "Persisted",
    "PositionCheck",
    "PositioningError",
    "Project",
    "has_unique_orders",
    "normalize_orders",
]
