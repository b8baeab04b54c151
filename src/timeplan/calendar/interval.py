from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import numpy as np

from timeplan.calendar._exceptions import IntervalError


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    Inclusive, day-granular overlap test.

    Two intervals that share a boundary day overlap: [Jan 1, Jan 10] and
    [Jan 10, Jan 20] are in conflict.
    """
    return not (a_end < b_start or b_end < a_start)


def overlap_mask(
    start: date,
    end: date,
    starts: np.ndarray,
    ends: np.ndarray,
) -> np.ndarray:
    """Vectorised ``intervals_overlap`` of one interval against many."""
    s = np.datetime64(start, "D")
    e = np.datetime64(end, "D")
    return ~((e < starts) | (ends < s))


@dataclass(frozen=True, slots=True)
class TimeInterval:
    start: date
    end: date

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise IntervalError(
                f"Interval start must be before its end; got {self.start} >= {self.end}."
            )

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def overlaps(self, other: TimeInterval) -> bool:
        return intervals_overlap(self.start, self.end, other.start, other.end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end
