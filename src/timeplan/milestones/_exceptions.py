class MilestoneError(ValueError):
    """Base exception for milestone and project records."""


class PositioningError(MilestoneError):
    """Raised when a milestone cannot be placed inside its project."""


class DateCollisionError(PositioningError):
    """Raised when a milestone would share its due date with a sibling."""
