"""Error types for the analytics core.

None of these are allowed to interrupt a visitor's browsing, signing up
or purchasing. Each is either recovered where it is raised or logged
and dropped by the caller.
"""


class AnalyticsError(Exception):
    pass


class AssignmentCorrupted(AnalyticsError):
    """Persisted brand variant is not one of the known variants."""

    def __init__(self, value: str):
        super().__init__(f"Invalid persisted brand variant: {value!r}")
        self.value = value


class RecordError(AnalyticsError):
    pass


class BackendUnavailable(RecordError):
    """The warehouse rejected or could not complete a read or write."""


class SummarizeInputInvalid(AnalyticsError):
    """A record cannot take part in aggregation (unknown variant or kind)."""
