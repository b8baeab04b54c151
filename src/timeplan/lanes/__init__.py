# src/timeplan/lanes/__init__.py
"""
timeplan.lanes
~~~~~~~~~~~~~~

Non-overlapping lanes.  Entities of one group share its lanes (scheduling
rows); no two entities of a lane may overlap, where intervals touching on a
boundary day count as overlapping.

Live edits are checked and, on conflict, rejected::

    from datetime import date
    from timeplan.lanes import LaneAllocator, LaneEntity

    a = LaneEntity("a", date(2025, 1, 1), date(2025, 1, 10), lane_id="row-0", group_id="g")
    b = LaneEntity("b", date(2025, 1, 10), date(2025, 1, 20), lane_id="row-0", group_id="g")

    allocator = LaneAllocator()
    allocator.check_conflict(b, [a])           # LaneConflict(entity_id='b', blocking_id='a', ...)

Batch repair (at data load) returns a diff instead of mutating anything::

    repair = allocator.repair([a, b], lanes)
    repair.moved            # (LaneMove(id='b', new_lane_id='g-lane-1', ...),)
    repair.created_lanes    # (Lane(id='g-lane-1', group_id='g', order=1),)

Public API
----------
LaneAllocator         Conflict checks, batch repair, packing, slot suggestions.
Lane, LaneEntity      Lane records and the time-bounded entities placed on them.
LaneConflict          The first member blocking a live edit.
LaneMove, LaneRepair  The diff produced by ``repair`` and ``pack``.
LaneError             Base exception; LaneConflictError blocks a write.
"""

from __future__ import annotations

from timeplan.lanes._exceptions import LaneConflictError, LaneError
from timeplan.lanes.allocator import (
    Lane,
    LaneAllocator,
    LaneConflict,
    LaneEntity,
    LaneMove,
    LaneRepair,
)

__all__ = [
    "Lane",
    "LaneAllocator",
    "LaneConflict",
    "LaneConflictError",
    "LaneEntity",
    "LaneError",
    "LaneMove",
    "LaneRepair",
]
