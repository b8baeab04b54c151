class AllocationError(ValueError):
    """Raised for malformed hours or budgets (not for budget overruns)."""
