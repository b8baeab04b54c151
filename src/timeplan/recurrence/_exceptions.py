class RecurrenceError(ValueError):
    """Raised for a malformed recurrence specification."""
