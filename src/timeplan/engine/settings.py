from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class EngineSettings:
    safety_cap: int = 100
    hard_cap: int = 1000
    open_ended_cap: int = 10
    look_ahead_days: int = 365
    batch_size: int = 20
    excessive_threshold: int = 50

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or value < 1:
                raise ValueError(f"{f.name} must be a positive integer; got {value!r}.")
        if self.safety_cap > self.hard_cap:
            raise ValueError(
                f"safety_cap ({self.safety_cap}) cannot exceed hard_cap ({self.hard_cap})."
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EngineSettings:
        """Build from a plain mapping, e.g. a table parsed from a TOML file."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown engine settings: {', '.join(unknown)}.")
        return cls(**dict(data))
