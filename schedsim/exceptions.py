class SchedulingError(ValueError):
    """Raised when a policy is handed input it cannot simulate."""


class InvalidWorkloadError(ValueError):
    """Raised when a workload file cannot be parsed into processes."""
