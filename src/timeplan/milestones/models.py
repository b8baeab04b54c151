from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import ClassVar, Optional, Union

import numpy as np

from timeplan.milestones._exceptions import MilestoneError


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    start_date: date
    end_date: Optional[date] = None
    continuous: bool = False
    estimated_hours: float = 0.0

    def __post_init__(self) -> None:
        if self.end_date is None and not self.continuous:
            raise MilestoneError(f"Project {self.id!r} needs an end date unless it is continuous.")
        if self.end_date is not None and self.end_date <= self.start_date:
            raise MilestoneError(
                f"Project {self.id!r} must end after it starts; "
                f"got {self.start_date} .. {self.end_date}."
            )
        if not np.isfinite(self.estimated_hours) or self.estimated_hours < 0.0:
            raise MilestoneError(
                f"Estimated hours must be finite and non-negative; got {self.estimated_hours}."
            )

    @property
    def budget_enforced(self) -> bool:
        return not self.continuous


@dataclass(frozen=True, slots=True)
class _MilestonePayload:
    id: str
    name: str
    due_date: date
    time_allocation_hours: float = 0.0
    project_id: Optional[str] = None
    order: int = 0
    source_spec_id: Optional[str] = None

    def __post_init__(self) -> None:
        hours = self.time_allocation_hours
        if not np.isfinite(hours) or hours < 0.0:
            raise MilestoneError(f"Time allocation must be finite and non-negative; got {hours}.")

    @property
    def is_recurring(self) -> bool:
        return self.source_spec_id is not None

    def _payload(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True, slots=True)
class Draft(_MilestonePayload):
    """A milestone that exists only in the caller's working set."""

    kind: ClassVar[str] = "draft"

    def persist(self, id: Optional[str] = None) -> Persisted:
        payload = self._payload()
        if id is not None:
            payload["id"] = id
        return Persisted(**payload)


@dataclass(frozen=True, slots=True)
class Persisted(_MilestonePayload):
    """A milestone already committed by the persistence layer."""

    kind: ClassVar[str] = "persisted"

    def as_draft(self) -> Draft:
        return Draft(**self._payload())


Milestone = Union[Draft, Persisted]
