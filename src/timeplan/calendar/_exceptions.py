class CalendarError(ValueError):
    """Base exception for all calendar-related errors."""


class IntervalError(CalendarError):
    """Raised when an interval's start is not strictly before its end."""
