from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from timeplan.lanes.allocator import LaneConflict


class LaneError(ValueError):
    """Base exception for lane bookkeeping errors."""


class LaneConflictError(LaneError):
    """Raised to block a live edit that would overlap a lane member."""

    def __init__(self, conflict: LaneConflict) -> None:
        self.conflict = conflict
        super().__init__(
            f"Entity {conflict.entity_id!r} overlaps {conflict.blocking_id!r} "
            f"on lane {conflict.lane_id!r}."
        )
